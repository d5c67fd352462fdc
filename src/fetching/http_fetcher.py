# src/fetching/http_fetcher.py - v1
"""httpx-based remote fetcher (default binding)."""

from __future__ import annotations

import logging

import httpx

from trackratings.fetching.base_fetcher import BaseFetcher, RawPayload
from trackratings.fetching.errors import RateLimitedError, TransportOrStatusError

logger = logging.getLogger(__name__)


class HttpxFetcher(BaseFetcher):
    """Fetch resource pages with a shared ``httpx.AsyncClient``.

    Args:
        timeout_s: Per-request timeout.
        user_agent: User-Agent header value.
        cookies: Optional session cookies (the site serves ratings to
            logged-in sessions the same way the browser would).
        client: Pre-built client (tests inject one with a MockTransport).
    """

    def __init__(
        self,
        timeout_s: float = 15.0,
        user_agent: str = "track-ratings/0.1",
        cookies: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout_s,
            headers={"User-Agent": user_agent},
            cookies=cookies,
        )

    async def fetch(self, address: str) -> RawPayload:
        try:
            response = await self._client.get(address)
        except httpx.HTTPError as e:
            raise TransportOrStatusError(address, f"Request to {address} failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError(address, retry_after=response.headers.get("Retry-After"))
        if not response.is_success:
            raise TransportOrStatusError(
                address,
                f"HTTP error! Status: {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug("Fetched %s (%d bytes)", address, len(response.content))
        return RawPayload(address=address, status_code=response.status_code, text=response.text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpxFetcher:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
