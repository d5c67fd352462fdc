# src/notify/notifier.py - v1
"""User-visible transient notices (auto-dismissing, never blocking)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

NoticeLevel = Literal["info", "warning", "error"]

DEFAULT_NOTICE_DURATION_S = 5.0
RATE_LIMIT_MESSAGE = "Rate limit hit! Try increasing the request delay in settings."


def fetch_failed_message(label: str) -> str:
    return f'Failed to fetch data for "{label}".'


@dataclass(frozen=True)
class Notice:
    """A transient message and how long it stays visible."""

    message: str
    level: NoticeLevel = "error"
    duration_s: float = DEFAULT_NOTICE_DURATION_S


class BaseNotifier(ABC):
    """Surface notices to the user."""

    @abstractmethod
    def notify(
        self,
        message: str,
        level: NoticeLevel = "error",
        duration_s: float = DEFAULT_NOTICE_DURATION_S,
    ) -> None:
        """Show ``message`` for ``duration_s`` seconds."""


class LoggingNotifier(BaseNotifier):
    """Route notices to the log at the matching level."""

    _LEVELS = {"info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}

    def notify(
        self,
        message: str,
        level: NoticeLevel = "error",
        duration_s: float = DEFAULT_NOTICE_DURATION_S,
    ) -> None:
        logger.log(self._LEVELS[level], "Notice (%.0fs): %s", duration_s, message)


class CollectingNotifier(BaseNotifier):
    """Record notices in memory (tests, CLI end-of-run summary)."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(
        self,
        message: str,
        level: NoticeLevel = "error",
        duration_s: float = DEFAULT_NOTICE_DURATION_S,
    ) -> None:
        self.notices.append(Notice(message=message, level=level, duration_s=duration_s))

    def messages(self, level: NoticeLevel | None = None) -> list[str]:
        return [n.message for n in self.notices if level is None or n.level == level]
