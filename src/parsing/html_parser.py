# src/parsing/html_parser.py - v1
"""BeautifulSoup parser for track pages.

Reads the rating block (average, number of ratings, bold flag) and the
song header (primary genre, chart rankings). A page without a rating value
or rating count yields no payload.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from trackratings.core.models import Payload
from trackratings.fetching.base_fetcher import RawPayload
from trackratings.parsing.base_parser import BasePayloadParser

logger = logging.getLogger(__name__)

RATING_SELECTOR = ".page_section_main_info_music_rating_value_rating"
COUNT_SELECTOR = ".page_section_main_info_music_rating_value_number"
BOLD_SELECTOR = 'img[alt="rating bolded"]'
GENRE_SELECTOR = ".page_song_header_info_genre_item_primary .genre"
RANKINGS_SELECTOR = ".page_song_header_info_rest .comma_separated"

_RATING_RE = re.compile(r"\d+\.\d+")
_COUNT_RE = re.compile(r"[\d,]+")


def _first_match(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(0) if match else None


class TrackPageParser(BasePayloadParser):
    """Extract a Payload from a track page's HTML."""

    def __init__(self, features: str = "html.parser") -> None:
        self._features = features

    def parse(self, raw: RawPayload) -> Payload | None:
        soup = BeautifulSoup(raw.text, self._features)

        rating_el = soup.select_one(RATING_SELECTOR)
        count_el = soup.select_one(COUNT_SELECTOR)
        if rating_el is None or count_el is None:
            logger.debug("No rating block in %s", raw.address)
            return None

        genre_el = soup.select_one(GENRE_SELECTOR)
        rankings = [
            el.get_text(" ", strip=True) for el in soup.select(RANKINGS_SELECTOR)
        ]
        rankings = [r for r in rankings if r]

        return Payload(
            rating=_first_match(_RATING_RE, rating_el.get_text(strip=True)),
            count=_first_match(_COUNT_RE, count_el.get_text(strip=True)),
            is_bold=rating_el.select_one(BOLD_SELECTOR) is not None,
            category=genre_el.get_text(strip=True) if genre_el is not None else None,
            rankings="\n".join(rankings) or None,
        )
