# src/scheduler/cancellation.py - v1
"""Graceful-stop token checked by the scheduler at chunk boundaries."""

from __future__ import annotations


class CancellationToken:
    """Once cancelled, no new chunk is issued; the in-flight chunk still settles."""

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled
