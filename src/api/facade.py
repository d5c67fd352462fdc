# src/api/facade.py - v1
"""Public API facade: wire the engine together and run it on a page.

Usage:
    from trackratings.api.facade import load_page
    result = await load_page(html)
    for line in result.sink.lines():
        print(line)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime

from trackratings.cache.base_kv_store import BaseKVStore
from trackratings.cache.cache_factory import create_kv_store
from trackratings.cache.ttl_cache import TTLCacheStore, utc_now
from trackratings.config.settings import Settings
from trackratings.controller.context import RunContext
from trackratings.controller.run_controller import RunController
from trackratings.core.models import RunReport
from trackratings.fetching.base_fetcher import BaseFetcher
from trackratings.fetching.http_fetcher import HttpxFetcher
from trackratings.merger.render_sink import BaseRenderSink, MemoryRenderSink
from trackratings.merger.result_merger import ResultMerger
from trackratings.notify.notifier import BaseNotifier, LoggingNotifier
from trackratings.page.page_source import BasePageSource, HtmlPageSource
from trackratings.parsing.base_parser import BasePayloadParser
from trackratings.parsing.html_parser import TrackPageParser
from trackratings.scheduler.fetch_scheduler import FetchScheduler, ProgressCallback

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of load_page(): the run report and the sink holding rendered rows."""

    report: RunReport | None
    sink: BaseRenderSink
    controller: RunController


def build_controller(
    page_source: BasePageSource,
    fetcher: BaseFetcher,
    settings: Settings | None = None,
    sink: BaseRenderSink | None = None,
    parser: BasePayloadParser | None = None,
    notifier: BaseNotifier | None = None,
    kv_store: BaseKVStore | None = None,
    clock: Callable[[], datetime] = utc_now,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> RunController:
    """Build a RunController with a loaded cache and every collaborator wired.

    Args:
        page_source: Snapshot source for the current page.
        fetcher: Remote fetcher (caller owns its lifetime).
        settings: Settings. Loaded from .env if None.
        sink: Render sink. Defaults to an in-memory sink.
        parser: Payload parser. Defaults to the track page parser.
        notifier: Notice channel. Defaults to logging.
        kv_store: Persistent cache backend. Defaults to the configured one.
        clock: Wall clock for cache timestamps.
        sleep: Awaitable sleep for the inter-chunk delay.
    """
    settings = settings or Settings()
    if kv_store is None:
        kv_store = create_kv_store(settings)
    cache = TTLCacheStore(kv_store, clock=clock)
    cache.load(settings.cache_ttl)

    if sink is None:
        sink = MemoryRenderSink(details_visible=settings.details_visible)
    merger = ResultMerger(sink)
    scheduler = FetchScheduler(
        cache=cache,
        fetcher=fetcher,
        parser=parser or TrackPageParser(),
        merger=merger,
        notifier=notifier or LoggingNotifier(),
        chunk_size=settings.chunk_size,
        inter_chunk_delay_s=settings.request_delay_s,
        notice_duration_s=settings.notice_duration_s,
        sleep=sleep,
    )
    context = RunContext(settings=settings, cache=cache)
    return RunController(
        context=context,
        page_source=page_source,
        scheduler=scheduler,
        merger=merger,
        base_url=settings.base_url,
    )


async def load_page(
    html: str,
    settings: Settings | None = None,
    name: str = "page",
    sink: BaseRenderSink | None = None,
    fetcher: BaseFetcher | None = None,
    notifier: BaseNotifier | None = None,
    kv_store: BaseKVStore | None = None,
    on_progress: ProgressCallback | None = None,
) -> LoadResult:
    """Load ratings for every track on a saved release page.

    Creates (and closes) an HttpxFetcher unless one is passed in. The
    cache backend stays open with the returned controller; close it with
    ``result.controller.context.cache.close()``.
    """
    settings = settings or Settings()
    if sink is None:
        sink = MemoryRenderSink(details_visible=settings.details_visible)
    owned_fetcher = fetcher is None
    active_fetcher = fetcher or HttpxFetcher(
        timeout_s=settings.http_timeout_s, user_agent=settings.user_agent
    )
    try:
        controller = build_controller(
            page_source=HtmlPageSource(html, name=name),
            fetcher=active_fetcher,
            settings=settings,
            sink=sink,
            notifier=notifier,
            kv_store=kv_store,
        )
        report = await controller.start(on_progress=on_progress)
    finally:
        if owned_fetcher:
            await active_fetcher.aclose()
    return LoadResult(report=report, sink=sink, controller=controller)
