# src/page/page_source.py - v1
"""Page snapshot sources: the list of targets present when a run starts.

The controller takes exactly one snapshot per run, so nothing downstream
needs to know about later page changes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from bs4 import BeautifulSoup

from trackratings.core.models import Target

logger = logging.getLogger(__name__)

# Desktop and mobile renderings of the same tracklist.
TRACK_LIST_IDS: tuple[str, ...] = ("tracks", "tracks_mobile")


class BasePageSource(ABC):
    """Snapshot interface over the current page content."""

    @abstractmethod
    def list_targets(self) -> list[Target]:
        """Return the targets currently on the page."""

    @property
    def name(self) -> str:
        """Page identifier for log context."""
        return type(self).__name__


class StaticPageSource(BasePageSource):
    """Fixed list of targets."""

    def __init__(self, targets: Iterable[Target], name: str = "static") -> None:
        self._targets = list(targets)
        self._name = name

    def list_targets(self) -> list[Target]:
        return list(self._targets)

    @property
    def name(self) -> str:
        return self._name


class HtmlPageSource(BasePageSource):
    """Read track targets out of a saved release page.

    Every ``li.track`` inside the known tracklist containers becomes one
    target; its address is the ``a.song`` link (None when the track has no
    song page, in which case the resolver drops it).
    """

    def __init__(
        self,
        html: str,
        name: str = "page",
        list_ids: tuple[str, ...] = TRACK_LIST_IDS,
        features: str = "html.parser",
    ) -> None:
        self._html = html
        self._name = name
        self._list_ids = list_ids
        self._features = features

    @property
    def name(self) -> str:
        return self._name

    def list_targets(self) -> list[Target]:
        soup = BeautifulSoup(self._html, self._features)
        targets: list[Target] = []
        for list_id in self._list_ids:
            container = soup.find(id=list_id)
            if container is None:
                continue
            for index, item in enumerate(container.select("li.track")):
                link = item.select_one("a.song")
                address = link.get("href") if link is not None else None
                label = link.get_text(strip=True) if link is not None else ""
                targets.append(
                    Target(
                        target_id=f"{list_id}:{index}",
                        address=address if isinstance(address, str) else None,
                        label=label,
                        source=list_id,
                    )
                )
        logger.debug("Page %s lists %d track elements", self._name, len(targets))
        return targets
