# src/main.py - v1
"""CLI entry point: load, cache commands.

Usage:
    trackratings load <page.html> [options]
    trackratings cache stats
    trackratings cache clear
    trackratings cache forget <address>...
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from contextlib import contextmanager
from pathlib import Path

from trackratings.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="trackratings",
        description=f"track-ratings v{__version__}: per-track ratings for release pages",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-backend", choices=["json", "sqlite", "memory"], default=None,
        help="Cache backend (default: from settings)",
    )
    parser.add_argument(
        "--cache-path", type=Path, default=None,
        help="Cache file location (default: from settings)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- load ---
    p_load = subparsers.add_parser(
        "load", help="Load track ratings for a saved release page",
    )
    p_load.add_argument("page", type=Path, help="Path to the saved release page HTML")
    p_load.add_argument(
        "--base-url", default=None,
        help="Base URL for relative track links (default: from settings)",
    )
    p_load.add_argument(
        "--chunk-size", type=int, default=None,
        help="Tracks fetched concurrently per chunk",
    )
    p_load.add_argument(
        "--delay-ms", type=int, default=None,
        help="Delay between request chunks in milliseconds",
    )
    p_load.add_argument(
        "--hide-details", action="store_true",
        help="Do not print genre and rankings",
    )
    p_load.add_argument(
        "--no-cache", action="store_true",
        help="Use a throwaway in-memory cache for this run",
    )
    p_load.set_defaults(func=_cmd_load)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Inspect or clear the cache")
    cache_sub = p_cache.add_subparsers(dest="cache_command")

    p_stats = cache_sub.add_parser("stats", help="Show cache statistics")
    p_stats.set_defaults(func=_cmd_cache_stats)

    p_clear = cache_sub.add_parser("clear", help="Remove every cached entry")
    p_clear.set_defaults(func=_cmd_cache_clear)

    p_forget = cache_sub.add_parser("forget", help="Remove cached entries for addresses")
    p_forget.add_argument("addresses", nargs="+", help="Track page addresses")
    p_forget.set_defaults(func=_cmd_cache_forget)

    return parser


def _load_settings(args: argparse.Namespace):
    """Build Settings from .env plus CLI overrides."""
    from trackratings.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.cache_backend:
        overrides["cache_backend"] = args.cache_backend
    if args.cache_path:
        overrides["cache_path"] = args.cache_path
    if getattr(args, "chunk_size", None) is not None:
        overrides["chunk_size"] = args.chunk_size
    if getattr(args, "delay_ms", None) is not None:
        overrides["request_delay_ms"] = args.delay_ms
    if getattr(args, "base_url", None):
        overrides["base_url"] = args.base_url
    if getattr(args, "hide_details", False):
        overrides["details_visible"] = False
    if getattr(args, "no_cache", False):
        overrides["cache_backend"] = "memory"
    return load_settings(**overrides)


async def _cmd_load(args: argparse.Namespace, settings) -> int:
    """Load ratings for every track on a saved page."""
    from trackratings.api.facade import load_page
    from trackratings.cache.cache_factory import create_kv_store
    from trackratings.merger.render_sink import ConsoleRenderSink

    page: Path = args.page
    if not page.is_file():
        logger.error("File not found: %s", page)
        return 1

    html = page.read_text(encoding="utf-8")
    sink = ConsoleRenderSink(details_visible=settings.details_visible)

    def _progress(progress) -> None:
        logger.info(
            "Progress: %d/%d loaded (chunk %d/%d)",
            progress.loaded, progress.total, progress.chunk_index, progress.chunk_count,
        )

    kv_store = create_kv_store(settings)
    try:
        result = await load_page(
            html, settings=settings, name=page.name, sink=sink,
            kv_store=kv_store, on_progress=_progress,
        )
    finally:
        kv_store.close()
    report = result.report
    if report is None:
        return 1

    schedule = report.schedule
    print("\nRun complete:")
    print(f"  Tracks on page:   {report.targets}")
    print(f"  Unique tracks:    {report.groups}")
    print(f"  From cache:       {schedule.cached}")
    print(f"  Fetched:          {schedule.summary}")
    print(f"  Failed:           {len(schedule.failed_keys)}")
    if schedule.rate_limited:
        print("  Rate limited: consider a larger --delay-ms")
    return 0 if not schedule.failed_keys else 2


async def _cmd_cache_stats(args: argparse.Namespace, settings) -> int:
    """Print cache statistics."""
    with _open_cache(settings) as cache:
        stats = cache.stats()
    print(f"\nCache ({settings.cache_backend}):")
    print(f"  Entries:  {stats.entries}")
    print(f"  TTL:      {stats.ttl_days:g} days")
    if stats.oldest is not None:
        print(f"  Oldest:   {stats.oldest.isoformat()}")
        print(f"  Newest:   {stats.newest.isoformat()}")
    return 0


async def _cmd_cache_clear(args: argparse.Namespace, settings) -> int:
    """Remove every cached entry."""
    with _open_cache(settings) as cache:
        removed = len(cache)
        cache.clear()
    print(f"Track ratings cache has been cleared ({removed} entries).")
    return 0


async def _cmd_cache_forget(args: argparse.Namespace, settings) -> int:
    """Remove cached entries for the given addresses."""
    from trackratings.resolver.key_resolver import canonical_key

    keys = [canonical_key(a, settings.base_url) for a in args.addresses]
    with _open_cache(settings) as cache:
        removed = cache.remove_all(k for k in keys if k is not None)
    print(f"Removed {removed} of {len(args.addresses)} cached entries.")
    return 0


@contextmanager
def _open_cache(settings):
    """Loaded TTL cache over the configured backend, closed on exit."""
    from trackratings.cache.cache_factory import create_kv_store
    from trackratings.cache.ttl_cache import TTLCacheStore

    cache = TTLCacheStore(create_kv_store(settings))
    try:
        cache.load(settings.cache_ttl)
        yield cache
    finally:
        cache.close()


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from trackratings.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
