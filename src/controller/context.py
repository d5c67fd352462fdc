# src/controller/context.py - v1
"""Run context: the mutable state shared by one controller's collaborators.

Held by the RunController and passed by reference, so two pages (or two
tests) never share counters or caches through module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trackratings.cache.ttl_cache import TTLCacheStore
from trackratings.config.settings import Settings
from trackratings.core.models import RunReport
from trackratings.scheduler.cancellation import CancellationToken


@dataclass
class RunContext:
    """Settings, cache and run bookkeeping for one controller."""

    settings: Settings
    cache: TTLCacheStore
    run_count: int = 0
    current_run_id: str | None = None
    cancel_token: CancellationToken | None = None
    last_report: RunReport | None = None
    history: list[RunReport] = field(default_factory=list)

    def begin_run(self, run_id: str) -> CancellationToken:
        self.run_count += 1
        self.current_run_id = run_id
        self.cancel_token = CancellationToken()
        return self.cancel_token

    def end_run(self, report: RunReport | None) -> None:
        self.current_run_id = None
        self.cancel_token = None
        if report is not None:
            self.last_report = report
            self.history.append(report)
