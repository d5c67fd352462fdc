# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Doubles and HTML builders live in tests/helpers.py; this module only
exposes them as fixtures.
"""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from tests.helpers import EchoParser, FakeClock, FakeFetcher, RecordingSleep
from trackratings.cache.memory_store import MemoryKVStore
from trackratings.cache.ttl_cache import TTLCacheStore
from trackratings.core.models import Payload


# === FIXTURES ===


@pytest.fixture(autouse=True)
def _reset_trackratings_logging():
    """Drop handlers installed by setup_logging() so tests never share them."""
    yield
    root = logging.getLogger("trackratings")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def cache(memory_kv: MemoryKVStore, clock: FakeClock) -> TTLCacheStore:
    """Loaded cache with a 7-day TTL."""
    store = TTLCacheStore(memory_kv, clock=clock)
    store.load(timedelta(days=7))
    return store


@pytest.fixture
def sample_payload() -> Payload:
    return Payload(
        rating="3.45",
        count="1,234",
        is_bold=True,
        category="Art Pop",
        rankings="#12 for 2019\n#300 overall",
    )


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def echo_parser() -> EchoParser:
    return EchoParser()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
