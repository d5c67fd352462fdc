# src/controller/run_controller.py - v1
"""Run controller: the idle/loading/loaded state machine behind the load button.

Transitions:
    IDLE --start()--> LOADING --scheduler done--> LOADED --unload()--> IDLE
                      LOADING --cancel()+done---> CANCELLED --unload()--> IDLE

start() outside IDLE is ignored, which makes an accidental double click
harmless. Unloading removes rendered output only; the persisted cache is
never touched by a load/unload cycle.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable

from trackratings.controller.context import RunContext
from trackratings.core.models import RunReport, RunState, Target
from trackratings.logging.context import clear_context, set_run_context
from trackratings.merger.result_merger import ResultMerger
from trackratings.page.page_source import BasePageSource
from trackratings.resolver.key_resolver import canonical_key, resolve_groups
from trackratings.scheduler.fetch_scheduler import FetchScheduler, ProgressCallback

logger = logging.getLogger(__name__)

LOAD_LABEL = "Load Track Ratings"
LOADING_LABEL = "Loading..."
UNLOAD_LABEL = "Unload Ratings"

StateListener = Callable[[RunState], None]


class RunController:
    """Gate user-triggered load/unload cycles and coordinate one run.

    Args:
        context: Shared run context (settings, cache, counters).
        page_source: Snapshot source for the current page.
        scheduler: Fetch scheduler wired to the same cache and merger.
        merger: Result merger; reset on unload.
        base_url: Base for resolving relative target addresses.
    """

    def __init__(
        self,
        context: RunContext,
        page_source: BasePageSource,
        scheduler: FetchScheduler,
        merger: ResultMerger,
        base_url: str | None = None,
    ) -> None:
        self._context = context
        self._page_source = page_source
        self._scheduler = scheduler
        self._merger = merger
        self._base_url = base_url if base_url is not None else context.settings.base_url
        self._state = RunState.IDLE
        self._listeners: list[StateListener] = []

    # --- State ---

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def context(self) -> RunContext:
        return self._context

    @property
    def page_source(self) -> BasePageSource:
        return self._page_source

    @property
    def controls_enabled(self) -> bool:
        """Load/unload controls are disabled for the duration of a run."""
        return self._state is not RunState.LOADING

    @property
    def label(self) -> str:
        if self._state is RunState.IDLE:
            return LOAD_LABEL
        if self._state is RunState.LOADING:
            return LOADING_LABEL
        return UNLOAD_LABEL

    def add_listener(self, listener: StateListener) -> None:
        """Call ``listener(new_state)`` on every transition."""
        self._listeners.append(listener)

    # --- Transitions ---

    async def start(self, on_progress: ProgressCallback | None = None) -> RunReport | None:
        """Run one load cycle from IDLE.

        Returns:
            The RunReport, or None when ignored because a run is not startable
            (already loading, or loaded and not yet unloaded).
        """
        if self._state is not RunState.IDLE:
            logger.info("start() ignored while %s", self._state.value)
            return None

        self._set_state(RunState.LOADING)
        run_id = uuid.uuid4().hex[:8]
        cancel_token = self._context.begin_run(run_id)
        set_run_context(run_id, self._page_source.name)
        report: RunReport | None = None

        try:
            targets = self._page_source.list_targets()
            groups = resolve_groups(targets, self._base_url)
            logger.info(
                "Run %s started: %d targets, %d unique resources",
                run_id, len(targets), len(groups),
            )
            schedule = await self._scheduler.run(
                groups, on_progress=on_progress, cancel_token=cancel_token
            )
            final_state = RunState.CANCELLED if schedule.cancelled else RunState.LOADED
            report = RunReport(
                run_id=run_id,
                state=final_state,
                targets=len(targets),
                groups=len(groups),
                schedule=schedule,
            )
        except BaseException:
            logger.error("Run %s aborted", run_id)
            self._set_state(RunState.IDLE)
            raise
        finally:
            self._context.end_run(report)
            clear_context()

        self._set_state(report.state)
        logger.info(
            "Run %s %s: %s loaded", run_id, report.state.value, report.schedule.summary
        )
        return report

    def unload(self) -> bool:
        """Remove rendered augmentation and return to IDLE. Cache is kept."""
        if self._state not in (RunState.LOADED, RunState.CANCELLED):
            logger.info("unload() ignored while %s", self._state.value)
            return False
        self._merger.reset()
        self._set_state(RunState.IDLE)
        return True

    async def toggle(self, on_progress: ProgressCallback | None = None) -> RunReport | None:
        """Load button: start from IDLE, unload when loaded, ignore while loading."""
        if self._state is RunState.IDLE:
            return await self.start(on_progress=on_progress)
        if self._state in (RunState.LOADED, RunState.CANCELLED):
            self.unload()
        return None

    def cancel(self, reason: str | None = None) -> bool:
        """Ask the running scheduler to stop after its in-flight chunk."""
        token = self._context.cancel_token
        if self._state is not RunState.LOADING or token is None:
            return False
        token.cancel(reason)
        logger.info("Cancellation requested%s", f": {reason}" if reason else "")
        return True

    def navigate(self, page_source: BasePageSource) -> bool:
        """Switch to a freshly loaded page and reset to IDLE.

        Rejected while a run is in progress.
        """
        if self._state is RunState.LOADING:
            logger.warning("navigate() rejected while loading")
            return False
        if self._state is not RunState.IDLE:
            self._merger.reset()
        self._page_source = page_source
        self._set_state(RunState.IDLE)
        return True

    # --- Cache management ---

    def clear_cache(self) -> int:
        """Empty the persisted cache. Returns the number of entries removed."""
        removed = len(self._context.cache)
        self._context.cache.clear()
        return removed

    def forget(self, targets: Iterable[Target]) -> int:
        """Drop cached payloads for ``targets``. Returns entries actually removed."""
        keys = {canonical_key(t.address, self._base_url) for t in targets}
        return self._context.cache.remove_all(k for k in keys if k is not None)

    def _set_state(self, state: RunState) -> None:
        if state is self._state:
            return
        logger.debug("State %s -> %s", self._state.value, state.value)
        self._state = state
        for listener in self._listeners:
            listener(state)
