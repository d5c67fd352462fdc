# src/logging/context.py - v1
"""Contextual logging support: attach run_id, page and chunk to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per run by the controller, chunk updated by the scheduler.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_page: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "page", default=None
)
_chunk: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "chunk", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    page: str | None = None
    chunk: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        page=_page.get(),
        chunk=_chunk.get(),
    )


def set_run_context(run_id: str, page: str | None = None) -> None:
    """Set run-level context (called once per controller run)."""
    _run_id.set(run_id)
    _page.set(page)


def set_chunk_context(chunk: str | None) -> None:
    """Set chunk-level context, e.g. ``"2/5"``."""
    _chunk.set(chunk)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _page.set(None)
    _chunk.set(None)
