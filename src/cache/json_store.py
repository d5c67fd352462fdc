# src/cache/json_store.py - v1
"""JSON file cache backend (default CACHE_BACKEND=json).

Stores every entry in one JSON document. Writes go to a sibling temp file
which is then renamed over the target, so a crash mid-write leaves the
previous document intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from trackratings.cache.base_kv_store import BaseKVStore
from trackratings.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_FORMAT_VERSION = 1


class JsonKVStore(BaseKVStore):
    """File-based store using a single JSON document."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backend_name(self) -> str:
        return "json"

    def read_all(self) -> dict[str, CacheEntry]:
        """Read all entries. A missing or corrupt file reads as empty."""
        self.skipped = 0
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Failed to read cache file %s: %s", self._path, e)
            return {}

        raw_entries = document.get("entries") if isinstance(document, dict) else None
        if not isinstance(raw_entries, dict):
            logger.warning("Cache file %s has no entries mapping, reading as empty", self._path)
            return {}

        entries: dict[str, CacheEntry] = {}
        for key, data in raw_entries.items():
            try:
                entries[key] = CacheEntry.model_validate(data)
            except ValidationError:
                self.skipped += 1
                logger.warning("Skipping invalid cache entry %s", key)
        return entries

    def write_all(self, entries: dict[str, CacheEntry]) -> None:
        """Atomically replace the cache file."""
        document = {
            "version": _FORMAT_VERSION,
            "entries": {
                key: entry.model_dump(mode="json") for key, entry in entries.items()
            },
        }
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
