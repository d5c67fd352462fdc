# src/core/models.py - v1
"""Core domain models shared by every engine component.

Target, ResourceGroup and Payload describe the page side of a run;
FetchOutcome, ScheduleProgress, ScheduleReport and RunReport describe what
the scheduler and controller did with them.
"""

from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Canonical address of one fetchable unit. Exact string equality.
ResourceKey = str


class RunState(str, enum.Enum):
    """Lifecycle of the run controller."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    CANCELLED = "cancelled"


class Target(BaseModel):
    """One page element that wants the payload of a resource."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    address: str | None = None
    label: str = ""
    source: str = "tracks"


class Payload(BaseModel):
    """Parsed metadata for one resource. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    rating: str | None = None
    count: str | None = None
    is_bold: bool = False
    category: str | None = None
    rankings: str | None = None


class ResourceGroup(BaseModel):
    """All targets sharing one resource key, in page order."""

    key: ResourceKey
    targets: list[Target] = Field(default_factory=list)

    @property
    def label(self) -> str:
        """Human-readable name for notices: first non-empty target label."""
        for target in self.targets:
            if target.label:
                return target.label
        return self.key


class FetchOutcome(BaseModel):
    """Result of fetching one key during a run."""

    key: ResourceKey
    status: Literal["fetched", "failed"]
    error_type: Literal["rate_limited", "transport", "parse"] | None = None
    error: str | None = None


class ScheduleProgress(BaseModel):
    """Cumulative progress reported after every completed chunk."""

    loaded: int
    failed: int
    total: int
    chunk_index: int
    chunk_count: int


class ScheduleReport(BaseModel):
    """Summary of one scheduler pass."""

    total_groups: int = 0
    cached: int = 0
    total_to_fetch: int = 0
    loaded: int = 0
    failed_keys: list[ResourceKey] = Field(default_factory=list)
    outcomes: list[FetchOutcome] = Field(default_factory=list)
    chunks_completed: int = 0
    chunk_count: int = 0
    cancelled: bool = False
    rate_limited: bool = False
    duration_ms: int = 0

    @property
    def summary(self) -> str:
        """Loaded/total count as shown to the user."""
        return f"{self.loaded}/{self.total_to_fetch}"


class RunReport(BaseModel):
    """Result of one controller run."""

    run_id: str
    state: RunState
    targets: int = 0
    groups: int = 0
    schedule: ScheduleReport = Field(default_factory=ScheduleReport)
