# src/cache/cache_factory.py - v1
"""Factory for persistent cache backend instantiation."""

from __future__ import annotations

from pathlib import Path

from trackratings.cache.base_kv_store import BaseKVStore
from trackratings.config.settings import Settings


def create_kv_store(settings: Settings | None = None) -> BaseKVStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseKVStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_path = (
        Path("~/.trackratings/cache.json") if settings is None else settings.cache_path
    )

    if backend == "json":
        from trackratings.cache.json_store import JsonKVStore
        return JsonKVStore(path=cache_path)

    if backend == "sqlite":
        from trackratings.cache.sqlite_store import SqliteKVStore
        return SqliteKVStore(db_path=Path(cache_path).with_suffix(".db"))

    if backend == "memory":
        from trackratings.cache.memory_store import MemoryKVStore
        return MemoryKVStore()

    raise ValueError(f"Unsupported cache backend: {backend!r}")
