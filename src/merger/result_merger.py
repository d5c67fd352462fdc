# src/merger/result_merger.py - v1
"""Result merger: fan one payload out to every target of its group."""

from __future__ import annotations

import logging

from trackratings.core.models import Payload, ResourceGroup
from trackratings.merger.render_sink import BaseRenderSink

logger = logging.getLogger(__name__)


class ResultMerger:
    """Deliver payloads to the render sink, one sink call per merge call."""

    def __init__(self, sink: BaseRenderSink) -> None:
        self._sink = sink
        self.merge_count = 0
        self.targets_merged = 0

    @property
    def sink(self) -> BaseRenderSink:
        return self._sink

    def merge(self, group: ResourceGroup, payload: Payload) -> None:
        self._sink.on_group_resolved(group, payload)
        self.merge_count += 1
        self.targets_merged += len(group.targets)
        logger.debug("Merged %s into %d targets", group.key, len(group.targets))

    def reset(self) -> None:
        """Remove rendered output. Counters are cumulative and survive resets."""
        self._sink.on_run_reset()
