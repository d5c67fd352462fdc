# src/fetching/errors.py - v1
"""Fetch and parse error taxonomy.

The scheduler contains all of these at per-key granularity; none of them
aborts a chunk or a run.
"""

from __future__ import annotations


class FetchError(Exception):
    """Base class for remote fetch failures."""

    error_type = "transport"

    def __init__(self, address: str, message: str, status_code: int | None = None) -> None:
        self.address = address
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(FetchError):
    """The remote answered HTTP 429 Too Many Requests."""

    error_type = "rate_limited"

    def __init__(self, address: str, retry_after: str | None = None) -> None:
        self.retry_after = retry_after
        super().__init__(
            address, f"Rate limited fetching {address} (HTTP 429)", status_code=429
        )


class TransportOrStatusError(FetchError):
    """Network failure or any non-2xx status other than 429."""


class ParseFailure(Exception):
    """Fetched content did not yield a usable payload."""

    error_type = "parse"

    def __init__(self, address: str, reason: str = "no rating found") -> None:
        self.address = address
        super().__init__(f"Could not parse {address}: {reason}")
