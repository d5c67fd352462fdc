# tests/unit/config/test_settings.py - v1
"""Tests for config/settings.py - typed Settings and validation rules."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from trackratings.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_scheduler(self):
        s = Settings(_env_file=None)
        assert s.chunk_size == 4
        assert s.request_delay_ms == 1500
        assert s.request_delay_s == 1.5

    def test_default_cache(self):
        s = Settings(_env_file=None)
        assert s.cache_backend == "json"
        assert s.cache_ttl_days == 7
        assert s.cache_ttl == timedelta(days=7)
        assert s.cache_path == Path("~/.trackratings/cache.json")

    def test_default_notices(self):
        s = Settings(_env_file=None)
        assert s.notice_duration_s == 5.0
        assert s.details_visible is True

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_level == "INFO"
        assert s.log_format == "text"
        assert s.log_file is None


class TestSettingsValidation:
    def test_zero_chunk_size(self):
        with pytest.raises(ConfigurationError, match="CHUNK_SIZE"):
            Settings(_env_file=None, chunk_size=0)

    def test_negative_delay(self):
        with pytest.raises(ConfigurationError, match="REQUEST_DELAY_MS"):
            Settings(_env_file=None, request_delay_ms=-1)

    def test_negative_ttl(self):
        with pytest.raises(ConfigurationError, match="CACHE_TTL_DAYS"):
            Settings(_env_file=None, cache_ttl_days=-1)

    def test_zero_ttl_allowed(self):
        s = Settings(_env_file=None, cache_ttl_days=0)
        assert s.cache_ttl == timedelta(0)

    def test_zero_delay_allowed(self):
        s = Settings(_env_file=None, request_delay_ms=0)
        assert s.request_delay_s == 0.0

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError, match="HTTP_TIMEOUT_S"):
            Settings(_env_file=None, http_timeout_s=0)

    def test_errors_are_collected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, chunk_size=0, log_retention=-1)
        message = str(exc_info.value)
        assert "CHUNK_SIZE" in message
        assert "LOG_RETENTION" in message


class TestSettingsEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TRACKRATINGS_CHUNK_SIZE", "8")
        monkeypatch.setenv("TRACKRATINGS_CACHE_BACKEND", "sqlite")
        s = Settings(_env_file=None)
        assert s.chunk_size == 8
        assert s.cache_backend == "sqlite"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("TRACKRATINGS_REQUEST_DELAY_MS=250\n", encoding="utf-8")
        s = Settings(_env_file=env_file)
        assert s.request_delay_s == 0.25


class TestLoadSettings:
    def test_overrides(self):
        s = load_settings(chunk_size=2, cache_backend="memory")
        assert s.chunk_size == 2
        assert s.cache_backend == "memory"

    def test_invalid_override_raises(self):
        with pytest.raises(ConfigurationError):
            load_settings(chunk_size=-3)
