# tests/unit/core/test_unit_models.py - v1
"""Tests for core/models.py - shared Pydantic models.

Also covers version.py import validation and the cancellation token.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tests.helpers import make_target
from trackratings.core.models import (
    FetchOutcome,
    Payload,
    ResourceGroup,
    RunReport,
    RunState,
    ScheduleReport,
    Target,
)
from trackratings.scheduler.cancellation import CancellationToken


class TestVersion:
    def test_version_exported(self):
        import trackratings
        from trackratings.version import __version__

        assert trackratings.__version__ == __version__ == "0.1.0"


class TestTarget:
    def test_frozen(self):
        target = make_target(0, "https://example.com/a")
        with pytest.raises(ValidationError):
            target.address = "https://example.com/b"

    def test_defaults(self):
        target = Target(target_id="t1")
        assert target.address is None
        assert target.label == ""
        assert target.source == "tracks"


class TestPayload:
    def test_frozen_and_comparable(self):
        a = Payload(rating="3.00", count="10")
        assert a == Payload(rating="3.00", count="10")
        with pytest.raises(ValidationError):
            a.rating = "1.00"


class TestResourceGroup:
    def test_label_first_non_empty(self):
        group = ResourceGroup(
            key="k",
            targets=[Target(target_id="t0"), Target(target_id="t1", label="Song")],
        )
        assert group.label == "Song"

    def test_label_falls_back_to_key(self):
        assert ResourceGroup(key="https://example.com/a").label == "https://example.com/a"


class TestReports:
    def test_summary(self):
        assert ScheduleReport(total_to_fetch=5, loaded=3).summary == "3/5"

    def test_fetch_outcome_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            FetchOutcome(key="k", status="skipped")

    def test_run_report_serializes_state(self):
        report = RunReport(run_id="r1", state=RunState.CANCELLED)
        assert report.model_dump(mode="json")["state"] == "cancelled"
        assert report.schedule.loaded == 0


class TestCancellationToken:
    def test_cancel(self):
        token = CancellationToken()
        assert token.cancelled is False
        token.cancel("navigated away")
        assert token.cancelled is True
        assert token.reason == "navigated away"
