# src/fetching/base_fetcher.py - v1
"""Abstract remote fetcher interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel


class RawPayload(BaseModel):
    """Unparsed response body for one address."""

    address: str
    status_code: int = 200
    text: str


class BaseFetcher(ABC):
    """Fetch the raw content behind one resource address.

    Implementations raise RateLimitedError for HTTP 429 and
    TransportOrStatusError for every other failure.
    """

    @abstractmethod
    async def fetch(self, address: str) -> RawPayload:
        """Fetch ``address`` and return its body."""

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
