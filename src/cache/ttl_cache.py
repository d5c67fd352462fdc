# src/cache/ttl_cache.py - v1
"""Process-wide TTL cache of fetched payloads.

The in-memory map is the read path; every mutation is written through to
the persistent backend before the call returns. Entries older than the TTL
are purged at load time and again lazily when a lookup finds one, so an
expired payload is never served.

All methods are synchronous. Under asyncio this makes each mutation atomic
with respect to other coroutines; a multi-threaded caller must wrap the
store in its own lock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone

from trackratings.cache.base_kv_store import BaseKVStore
from trackratings.cache.models import CacheEntry, CacheStats
from trackratings.core.models import Payload, ResourceKey

logger = logging.getLogger(__name__)


class CacheNotLoadedError(RuntimeError):
    """Raised when the cache is used before load()."""


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class TTLCacheStore:
    """Keyed payload cache with time-based expiration and write-through persistence.

    Args:
        kv_store: Persistent backend (JSON file, SQLite, memory).
        clock: Callable returning the current aware datetime.
    """

    def __init__(
        self,
        kv_store: BaseKVStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._kv = kv_store
        self._clock = clock
        self._entries: dict[ResourceKey, CacheEntry] = {}
        self._ttl: timedelta | None = None

    @property
    def ttl(self) -> timedelta:
        self._require_loaded()
        assert self._ttl is not None
        return self._ttl

    @property
    def loaded(self) -> bool:
        return self._ttl is not None

    def load(self, ttl: timedelta) -> int:
        """Read persisted entries, drop expired ones, keep the rest in memory.

        Expired entries, and entries the backend could not validate, are
        removed from persisted storage before this returns.

        Returns:
            Number of entries purged.
        """
        if ttl < timedelta(0):
            raise ValueError("ttl must be >= 0")

        persisted = self._kv.read_all()
        now = self._clock()
        valid = {
            key: entry
            for key, entry in persisted.items()
            if entry.key == key and not entry.is_expired(now, ttl)
        }
        purged = len(persisted) - len(valid) + self._kv.skipped

        self._ttl = ttl
        self._entries = valid
        if purged:
            self._kv.write_all(self._entries)

        logger.info(
            "Cache loaded from %s backend: %d valid, %d expired or invalid purged",
            self._kv.backend_name, len(valid), purged,
        )
        return purged

    def get(self, key: ResourceKey) -> Payload | None:
        """Return the payload for ``key`` if present and not expired now."""
        entry = self._valid_entry(key)
        return entry.payload if entry is not None else None

    def contains(self, key: ResourceKey) -> bool:
        """True if ``key`` has a valid (unexpired) entry."""
        return self._valid_entry(key) is not None

    def put(self, key: ResourceKey, payload: Payload) -> None:
        """Insert or overwrite ``key`` stamped with the current time, then persist."""
        self._require_loaded()
        entry = CacheEntry(key=key, payload=payload, fetched_at=self._clock())
        previous = dict(self._entries)
        self._entries[key] = entry
        self._persist(previous)
        logger.debug("Cached %s", key)

    def remove(self, key: ResourceKey) -> bool:
        """Delete ``key``. Returns whether it was present."""
        return self.remove_all([key]) == 1

    def remove_all(self, keys: Iterable[ResourceKey]) -> int:
        """Delete every key in ``keys``.

        Returns:
            How many of the keys were actually present.
        """
        self._require_loaded()
        previous = dict(self._entries)
        removed = 0
        for key in set(keys):
            if self._entries.pop(key, None) is not None:
                removed += 1
        if removed:
            self._persist(previous)
        return removed

    def clear(self) -> None:
        """Empty the entire store and persist."""
        self._require_loaded()
        previous = dict(self._entries)
        self._entries = {}
        self._persist(previous)
        logger.info("Cache cleared (%d entries removed)", len(previous))

    def keys(self) -> list[ResourceKey]:
        """Keys currently held in memory."""
        self._require_loaded()
        return list(self._entries)

    def stats(self) -> CacheStats:
        self._require_loaded()
        assert self._ttl is not None
        fetched = [entry.fetched_at for entry in self._entries.values()]
        return CacheStats(
            entries=len(self._entries),
            ttl_days=self._ttl.total_seconds() / 86400,
            oldest=min(fetched) if fetched else None,
            newest=max(fetched) if fetched else None,
            keys=sorted(self._entries),
        )

    def close(self) -> None:
        """Close the persistent backend."""
        self._kv.close()

    def __len__(self) -> int:
        return len(self._entries)

    def _valid_entry(self, key: ResourceKey) -> CacheEntry | None:
        self._require_loaded()
        assert self._ttl is not None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock(), self._ttl):
            logger.debug("Cache entry expired: %s", key)
            previous = dict(self._entries)
            del self._entries[key]
            self._persist(previous)
            return None
        return entry

    def _persist(self, previous: dict[ResourceKey, CacheEntry]) -> None:
        """Write the current map through; roll back memory if the write fails."""
        try:
            self._kv.write_all(self._entries)
        except Exception:
            self._entries = previous
            logger.error("Cache write to %s backend failed", self._kv.backend_name)
            raise

    def _require_loaded(self) -> None:
        if self._ttl is None:
            raise CacheNotLoadedError("TTLCacheStore.load() must be called first")
