# src/cache/models.py - v1
"""Cache domain models: CacheEntry, CacheStats."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import AwareDatetime, BaseModel, Field

from trackratings.core.models import Payload, ResourceKey


class CacheEntry(BaseModel):
    """Single cache entry linking a resource key to its fetched payload."""

    key: ResourceKey
    payload: Payload
    fetched_at: AwareDatetime

    def age(self, now: datetime) -> timedelta:
        """Time elapsed since the payload was fetched."""
        return now - self.fetched_at

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        """True once the entry is older than ``ttl``."""
        return self.age(now) > ttl


class CacheStats(BaseModel):
    """Snapshot of the in-memory cache, for the CLI and logs."""

    entries: int = 0
    ttl_days: float = 0.0
    oldest: datetime | None = None
    newest: datetime | None = None
    keys: list[ResourceKey] = Field(default_factory=list)
