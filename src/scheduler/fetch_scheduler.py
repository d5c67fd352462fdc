# src/scheduler/fetch_scheduler.py - v1
"""Fetch scheduler: chunked, throttled fetching of uncached resource groups.

Workflow for one run:
  1. Coalesce groups by key, split them into cached and pending.
  2. Merge cached groups immediately (no network, no delay).
  3. Fetch pending groups in consecutive chunks of ``chunk_size``; every
     key in a chunk is fetched concurrently, the chunk is awaited as a
     whole, and the scheduler sleeps ``inter_chunk_delay_s`` before the
     next chunk (never after the last one).
  4. A fetched payload is cached, then merged. A failed key is reported
     and skipped; it never aborts the chunk or the run.

Chunk N+1 never starts before every fetch of chunk N has settled. That
barrier plus the inter-chunk sleep is the only rate limiting performed.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from trackratings.cache.ttl_cache import TTLCacheStore
from trackratings.core.models import (
    FetchOutcome,
    Payload,
    ResourceGroup,
    ScheduleProgress,
    ScheduleReport,
)
from trackratings.fetching.base_fetcher import BaseFetcher, RawPayload
from trackratings.fetching.errors import FetchError, ParseFailure, RateLimitedError
from trackratings.logging.context import set_chunk_context
from trackratings.merger.result_merger import ResultMerger
from trackratings.notify.notifier import (
    DEFAULT_NOTICE_DURATION_S,
    RATE_LIMIT_MESSAGE,
    BaseNotifier,
    LoggingNotifier,
    NoticeLevel,
    fetch_failed_message,
)
from trackratings.parsing.base_parser import BasePayloadParser
from trackratings.resolver.key_resolver import coalesce_groups
from trackratings.scheduler.cancellation import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4
DEFAULT_INTER_CHUNK_DELAY_S = 1.5

ProgressCallback = Callable[[ScheduleProgress], Any]


def split_chunks(groups: Sequence[ResourceGroup], chunk_size: int) -> list[list[ResourceGroup]]:
    """Consecutive chunks of at most ``chunk_size`` groups."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    return [list(groups[i:i + chunk_size]) for i in range(0, len(groups), chunk_size)]


class FetchScheduler:
    """Fetch payloads for uncached groups at bounded concurrency.

    Args:
        cache: Loaded TTL cache; answers hits and receives fetched payloads.
        fetcher: Remote fetcher.
        parser: Payload parser.
        merger: Result merger receiving cached and fetched payloads.
        notifier: User-visible notices. Defaults to logging.
        chunk_size: Groups per chunk (= concurrent fetches per chunk).
        inter_chunk_delay_s: Pause between chunks.
        notice_duration_s: Display time passed along with each notice.
        sleep: Awaitable sleep, injectable for tests.
        clock: Monotonic clock used for the run duration.
    """

    def __init__(
        self,
        cache: TTLCacheStore,
        fetcher: BaseFetcher,
        parser: BasePayloadParser,
        merger: ResultMerger,
        notifier: BaseNotifier | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        inter_chunk_delay_s: float = DEFAULT_INTER_CHUNK_DELAY_S,
        notice_duration_s: float = DEFAULT_NOTICE_DURATION_S,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if inter_chunk_delay_s < 0:
            raise ValueError("inter_chunk_delay_s must be >= 0")
        self._cache = cache
        self._fetcher = fetcher
        self._parser = parser
        self._merger = merger
        self._notifier = notifier or LoggingNotifier()
        self._chunk_size = chunk_size
        self._delay_s = inter_chunk_delay_s
        self._notice_duration_s = notice_duration_s
        self._sleep = sleep
        self._clock = clock

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def inter_chunk_delay_s(self) -> float:
        return self._delay_s

    async def run(
        self,
        groups: Sequence[ResourceGroup],
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ScheduleReport:
        """Merge cached groups, then fetch the rest chunk by chunk.

        Args:
            groups: Resource groups for this run.
            on_progress: Called (sync or async) after every chunk.
            cancel_token: Checked at chunk boundaries for a graceful stop.

        Returns:
            ScheduleReport with per-key outcomes and loaded/total counts.
        """
        start = self._clock()
        groups = coalesce_groups(groups)
        report = ScheduleReport(total_groups=len(groups))

        pending: list[ResourceGroup] = []
        for group in groups:
            payload = self._cache.get(group.key)
            if payload is None:
                pending.append(group)
                continue
            self._merger.merge(group, payload)
            report.cached += 1

        report.total_to_fetch = len(pending)
        if not pending:
            logger.info("All %d groups were already cached", report.total_groups)
            report.duration_ms = self._elapsed_ms(start)
            return report

        chunks = split_chunks(pending, self._chunk_size)
        report.chunk_count = len(chunks)
        logger.info(
            "Fetching %d groups in %d chunks (%d cached, chunk_size=%d, delay=%.2fs)",
            len(pending), len(chunks), report.cached, self._chunk_size, self._delay_s,
        )

        try:
            for index, chunk in enumerate(chunks):
                if self._stop_requested(cancel_token, report):
                    break
                if index > 0:
                    await self._sleep(self._delay_s)
                    if self._stop_requested(cancel_token, report):
                        break

                set_chunk_context(f"{index + 1}/{len(chunks)}")
                await self._run_chunk(chunk, report)
                report.chunks_completed += 1

                logger.info(
                    "Chunk %d/%d done: %d/%d loaded",
                    index + 1, len(chunks), report.loaded, report.total_to_fetch,
                )
                await self._emit_progress(
                    on_progress,
                    ScheduleProgress(
                        loaded=report.loaded,
                        failed=len(report.failed_keys),
                        total=report.total_to_fetch,
                        chunk_index=index + 1,
                        chunk_count=len(chunks),
                    ),
                )
        finally:
            set_chunk_context(None)

        report.duration_ms = self._elapsed_ms(start)
        logger.info(
            "Scheduler finished: %s loaded, %d failed, %d cached, %dms%s",
            report.summary, len(report.failed_keys), report.cached,
            report.duration_ms, " (cancelled)" if report.cancelled else "",
        )
        return report

    async def _run_chunk(self, chunk: list[ResourceGroup], report: ScheduleReport) -> None:
        """Fetch every group in ``chunk`` concurrently and wait for all of them."""
        results = await asyncio.gather(
            *(self._process_group(group, report) for group in chunk),
            return_exceptions=True,
        )

        errors: list[BaseException] = []
        for group, result in zip(chunk, results):
            if isinstance(result, BaseException):
                # Cache persistence failures: the chunk has settled, now fail loudly.
                errors.append(result)
                continue
            report.outcomes.append(result)
            if result.status == "fetched":
                report.loaded += 1
            else:
                report.failed_keys.append(group.key)

        if errors:
            raise errors[0]

    async def _process_group(
        self, group: ResourceGroup, report: ScheduleReport
    ) -> FetchOutcome:
        """Fetch, parse, cache and merge one group. Fetch/parse errors stay here."""
        try:
            raw = await self._fetcher.fetch(group.key)
        except RateLimitedError as e:
            logger.warning("Rate limited on %s", group.key)
            if not report.rate_limited:
                report.rate_limited = True
                self._notify(RATE_LIMIT_MESSAGE, level="warning")
            self._notify(fetch_failed_message(group.label))
            return FetchOutcome(
                key=group.key, status="failed", error_type="rate_limited", error=str(e)
            )
        except FetchError as e:
            logger.error("Error processing %r: %s", group.label, e)
            self._notify(fetch_failed_message(group.label))
            return FetchOutcome(
                key=group.key, status="failed", error_type="transport", error=str(e)
            )
        except Exception as e:
            logger.exception("Unexpected error fetching %s", group.key)
            self._notify(fetch_failed_message(group.label))
            return FetchOutcome(
                key=group.key, status="failed", error_type="transport", error=str(e)
            )

        payload = self._parse(raw)
        if payload is None:
            failure = ParseFailure(group.key)
            logger.warning("%s", failure)
            return FetchOutcome(
                key=group.key, status="failed", error_type="parse", error=str(failure)
            )

        self._cache.put(group.key, payload)
        self._merger.merge(group, payload)
        return FetchOutcome(key=group.key, status="fetched")

    def _parse(self, raw: RawPayload) -> Payload | None:
        try:
            return self._parser.parse(raw)
        except Exception:
            logger.warning("Parser raised on %s", raw.address, exc_info=True)
            return None

    def _notify(self, message: str, level: NoticeLevel = "error") -> None:
        self._notifier.notify(message, level=level, duration_s=self._notice_duration_s)

    def _stop_requested(
        self, cancel_token: CancellationToken | None, report: ScheduleReport
    ) -> bool:
        if cancel_token is None or not cancel_token.cancelled:
            return False
        report.cancelled = True
        logger.info(
            "Stop requested after %d/%d chunks, not issuing more",
            report.chunks_completed, report.chunk_count,
        )
        return True

    @staticmethod
    async def _emit_progress(
        on_progress: ProgressCallback | None, progress: ScheduleProgress
    ) -> None:
        if on_progress is None:
            return
        result = on_progress(progress)
        if inspect.isawaitable(result):
            await result

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)
