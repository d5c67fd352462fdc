# tests/helpers.py - v1
"""Test doubles and HTML builders shared by unit and integration tests.

A controllable clock, a scripted fetcher that records concurrency, a
recording sleep, and builders for track pages and release pages. No
network access: every fetch is faked.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from trackratings.core.models import Payload, Target
from trackratings.fetching.base_fetcher import BaseFetcher, RawPayload
from trackratings.parsing.base_parser import BasePayloadParser

BASE_URL = "https://rateyourmusic.com"


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeFetcher(BaseFetcher):
    """Scripted fetcher that records calls and peak concurrency.

    ``errors`` maps an address to the exception to raise; every other
    address returns ``responses[address]`` or a default body.
    """

    def __init__(
        self,
        responses: dict[str, str] | None = None,
        errors: dict[str, Exception] | None = None,
        latency_s: float = 0.0,
    ) -> None:
        self.responses = responses or {}
        self.errors = errors or {}
        self.latency_s = latency_s
        self.calls: list[str] = []
        self.events: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch(self, address: str) -> RawPayload:
        self.calls.append(address)
        self.events.append(("start", address))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so every fetch of a chunk is in flight at the same time.
            await asyncio.sleep(self.latency_s)
            if address in self.errors:
                raise self.errors[address]
            return RawPayload(address=address, text=self.responses.get(address, address))
        finally:
            self.in_flight -= 1
            self.events.append(("end", address))

    async def aclose(self) -> None:
        self.closed = True


class EchoParser(BasePayloadParser):
    """Payload whose category is the response body; empty body parses to None."""

    def parse(self, raw: RawPayload) -> Payload | None:
        if not raw.text:
            return None
        return Payload(rating="3.50", count="120", is_bold=False, category=raw.text)


class RecordingSleep:
    """Awaitable sleep that records requested delays and only yields."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


def make_target(index: int, address: str | None, source: str = "tracks") -> Target:
    return Target(
        target_id=f"{source}:{index}",
        address=address,
        label=f"Track {index + 1}",
        source=source,
    )


def song_url(slug: str) -> str:
    return f"{BASE_URL}/song/artist/{slug}/"


def track_page_html(
    rating: str = "3.45",
    count: str = "1,234",
    bold: bool = False,
    genre: str | None = "Art Pop",
    rankings: list[str] | None = None,
) -> str:
    """Minimal track page carrying the rating block and song header."""
    bold_img = '<img alt="rating bolded" src="x.png">' if bold else ""
    genre_html = (
        f'<span class="page_song_header_info_genre_item_primary">'
        f'<a class="genre" href="/genre/x/">{genre}</a></span>'
        if genre
        else ""
    )
    rankings_html = "".join(
        f'<span class="comma_separated">{r}</span>' for r in (rankings or [])
    )
    return f"""
    <html><body>
      <div class="page_song_header_info">{genre_html}</div>
      <div class="page_song_header_info_rest">{rankings_html}</div>
      <span class="page_section_main_info_music_rating_value_rating">
        {bold_img} {rating} / 5.0
      </span>
      <span class="page_section_main_info_music_rating_value_number">
        {count} ratings
      </span>
    </body></html>
    """


def release_page_html(slugs: list[str | None], mobile: bool = True) -> str:
    """Release page listing ``slugs`` in the desktop list and, optionally, the mobile list.

    A None slug renders a track without a song link.
    """

    def _items(prefix: str) -> str:
        rows = []
        for slug in slugs:
            if slug is None:
                rows.append(
                    '<li class="track"><div class="tracklist_line">'
                    '<span class="tracklist_num">-</span><span>Interlude</span></div></li>'
                )
            else:
                rows.append(
                    '<li class="track"><div class="tracklist_line">'
                    '<span class="tracklist_num">1</span>'
                    f'<a class="song" href="/song/artist/{slug}/">{prefix}{slug}</a>'
                    "</div></li>"
                )
        return "".join(rows)

    mobile_html = f'<ul id="tracks_mobile">{_items("")}</ul>' if mobile else ""
    return f'<html><body><ul id="tracks">{_items("")}</ul>{mobile_html}</body></html>'


