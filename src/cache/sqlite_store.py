# src/cache/sqlite_store.py - v1
"""SQLite cache backend (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, one row per resource key.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from trackratings.cache.base_kv_store import BaseKVStore
from trackratings.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    fetched_at TEXT NOT NULL
);
"""


class SqliteKVStore(BaseKVStore):
    """SQLite-backed store; ``write_all`` replaces the table in one transaction."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    @property
    def backend_name(self) -> str:
        return "sqlite"

    def read_all(self) -> dict[str, CacheEntry]:
        cursor = self._conn.execute("SELECT key, data FROM cache_entries")
        entries: dict[str, CacheEntry] = {}
        self.skipped = 0
        for key, data in cursor.fetchall():
            try:
                entries[key] = CacheEntry.model_validate_json(data)
            except ValidationError:
                self.skipped += 1
                logger.warning("Skipping invalid cache row %s", key)
        return entries

    def write_all(self, entries: dict[str, CacheEntry]) -> None:
        rows = [
            (key, entry.model_dump_json(), entry.fetched_at.isoformat())
            for key, entry in entries.items()
        ]
        with self._conn:
            self._conn.execute("DELETE FROM cache_entries")
            self._conn.executemany(
                "INSERT INTO cache_entries (key, data, fetched_at) VALUES (?, ?, ?)",
                rows,
            )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
