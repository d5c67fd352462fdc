# src/cache/base_kv_store.py - v1
"""Abstract persistent key-value store backing the TTL cache."""

from __future__ import annotations

from abc import ABC, abstractmethod

from trackratings.cache.models import CacheEntry


class BaseKVStore(ABC):
    """Whole-mapping persistence for cache entries.

    ``write_all`` must be durable when it returns: the TTL cache treats a
    returned call as persisted before the scheduler moves on.

    Attributes:
        skipped: Invalid entries dropped by the last ``read_all`` call.
    """

    skipped: int = 0

    @abstractmethod
    def read_all(self) -> dict[str, CacheEntry]:
        """Read every valid persisted entry, keyed by resource key."""

    @abstractmethod
    def write_all(self, entries: dict[str, CacheEntry]) -> None:
        """Replace the persisted mapping with ``entries``."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Short backend identifier for logs."""

    def close(self) -> None:
        """Release backend resources. Nothing to release by default."""
