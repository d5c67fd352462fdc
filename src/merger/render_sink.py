# src/merger/render_sink.py - v1
"""Render sinks: where merged payloads end up.

A sink is responsible for idempotence at its own boundary: resolving the
same target twice must not produce a second rendering.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from trackratings.core.models import Payload, ResourceGroup, Target


class BaseRenderSink(ABC):
    """Receives resolved groups and run resets from the merger."""

    @abstractmethod
    def on_group_resolved(self, group: ResourceGroup, payload: Payload) -> None:
        """Render ``payload`` on every target of ``group``."""

    @abstractmethod
    def on_run_reset(self) -> None:
        """Remove every rendered augmentation."""


@dataclass(frozen=True)
class RenderedRow:
    """One target with the payload rendered on it."""

    target: Target
    payload: Payload


def format_row(row: RenderedRow, details_visible: bool = True) -> str:
    """Single-line text rendering of a row."""
    payload = row.payload
    name = row.target.label or row.target.target_id
    star = "**" if payload.is_bold else "*"
    line = f"{name}: {star} {payload.rating or '?'} from {payload.count or '?'} ratings"
    if details_visible:
        if payload.category:
            line += f" | {payload.category}"
        if payload.rankings:
            line += " | " + "; ".join(payload.rankings.splitlines())
    return line


class MemoryRenderSink(BaseRenderSink):
    """Keep rendered rows in memory, one per target id."""

    def __init__(self, details_visible: bool = True) -> None:
        self._rows: dict[str, RenderedRow] = {}
        self._order: list[str] = []
        self.details_visible = details_visible
        self.resolve_calls = 0
        self.reset_calls = 0

    def on_group_resolved(self, group: ResourceGroup, payload: Payload) -> None:
        self.resolve_calls += 1
        for target in group.targets:
            if target.target_id in self._rows:
                continue
            row = RenderedRow(target=target, payload=payload)
            self._rows[target.target_id] = row
            self._order.append(target.target_id)
            self._on_new_row(row)

    def on_run_reset(self) -> None:
        self.reset_calls += 1
        self._rows.clear()
        self._order.clear()

    def toggle_details(self) -> bool:
        """Flip category/rankings visibility. Returns the new value."""
        self.details_visible = not self.details_visible
        return self.details_visible

    def rendered(self) -> list[RenderedRow]:
        """Rendered rows in the order they first appeared."""
        return [self._rows[target_id] for target_id in self._order]

    def payload_for(self, target_id: str) -> Payload | None:
        row = self._rows.get(target_id)
        return row.payload if row is not None else None

    def lines(self) -> list[str]:
        return [format_row(row, self.details_visible) for row in self.rendered()]

    def __len__(self) -> int:
        return len(self._rows)

    def _on_new_row(self, row: RenderedRow) -> None:
        """Hook for subclasses that render as rows arrive."""


class ConsoleRenderSink(MemoryRenderSink):
    """Print each row once, as soon as it is rendered."""

    def __init__(
        self,
        details_visible: bool = True,
        write: Callable[[str], None] = print,
    ) -> None:
        super().__init__(details_visible=details_visible)
        self._write = write

    def _on_new_row(self, row: RenderedRow) -> None:
        self._write(f"[{row.target.source}] {format_row(row, self.details_visible)}")
