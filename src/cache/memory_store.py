# src/cache/memory_store.py - v1
"""In-process cache backend (CACHE_BACKEND=memory).

Nothing survives the process; used by tests and ``--no-cache`` runs.
"""

from __future__ import annotations

from trackratings.cache.base_kv_store import BaseKVStore
from trackratings.cache.models import CacheEntry


class MemoryKVStore(BaseKVStore):
    """Dict-backed store. Keeps its own copy so callers cannot alias it."""

    def __init__(self, entries: dict[str, CacheEntry] | None = None) -> None:
        self._entries: dict[str, CacheEntry] = dict(entries or {})
        self.write_count = 0

    def read_all(self) -> dict[str, CacheEntry]:
        return dict(self._entries)

    def write_all(self, entries: dict[str, CacheEntry]) -> None:
        self._entries = dict(entries)
        self.write_count += 1

    @property
    def backend_name(self) -> str:
        return "memory"
