# src/parsing/base_parser.py - v1
"""Abstract payload parser interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from trackratings.core.models import Payload
from trackratings.fetching.base_fetcher import RawPayload


class BasePayloadParser(ABC):
    """Turn a fetched page into a Payload.

    Returns None on malformed or unexpected content; the scheduler records
    that as a parse failure for the key.
    """

    @abstractmethod
    def parse(self, raw: RawPayload) -> Payload | None:
        """Parse ``raw`` into a Payload, or None if unusable."""
