# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for engine tuning (chunk size, request delay,
cache lifetime), cache backend selection, HTTP client options and logging.
Every field can be set through a ``TRACKRATINGS_``-prefixed environment
variable or the ``.env`` file.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration values are out of range or inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRACKRATINGS_",
        extra="ignore",
    )

    # === Scheduler ===
    chunk_size: int = 4
    request_delay_ms: int = 1500

    # === Cache ===
    cache_ttl_days: int = 7
    cache_backend: Literal["json", "sqlite", "memory"] = "json"
    cache_path: Path = Path("~/.trackratings/cache.json")

    # === Remote site ===
    base_url: str = "https://rateyourmusic.com"
    http_timeout_s: float = 15.0
    user_agent: str = "track-ratings/0.1"

    # === User-facing notices / rendering ===
    notice_duration_s: float = 5.0
    details_visible: bool = True

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @model_validator(mode="after")
    def validate_ranges(self) -> Settings:
        """Reject values the scheduler and cache cannot work with."""
        errors: list[str] = []

        if self.chunk_size <= 0:
            errors.append("CHUNK_SIZE must be > 0")
        if self.request_delay_ms < 0:
            errors.append("REQUEST_DELAY_MS must be >= 0")
        if self.cache_ttl_days < 0:
            errors.append("CACHE_TTL_DAYS must be >= 0")
        if self.http_timeout_s <= 0:
            errors.append("HTTP_TIMEOUT_S must be > 0")
        if self.notice_duration_s < 0:
            errors.append("NOTICE_DURATION_S must be >= 0")
        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_ttl(self) -> timedelta:
        """Cache lifetime as a timedelta."""
        return timedelta(days=self.cache_ttl_days)

    @property
    def request_delay_s(self) -> float:
        """Inter-chunk delay in seconds."""
        return self.request_delay_ms / 1000.0


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (CLI flags, tests).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If a value is out of range.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
