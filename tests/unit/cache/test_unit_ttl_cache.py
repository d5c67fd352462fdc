# tests/unit/cache/test_unit_ttl_cache.py - v1
"""Tests for cache/ttl_cache.py - TTL purge, write-through, rollback."""

from __future__ import annotations

import json
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from trackratings.cache.json_store import JsonKVStore
from trackratings.cache.memory_store import MemoryKVStore
from trackratings.cache.models import CacheEntry
from trackratings.cache.ttl_cache import CacheNotLoadedError, TTLCacheStore
from trackratings.core.models import Payload

KEY_A = "https://rateyourmusic.com/song/artist/a/"
KEY_B = "https://rateyourmusic.com/song/artist/b/"


def _entry(key, clock, days_old: float = 0) -> CacheEntry:
    return CacheEntry(
        key=key,
        payload=Payload(rating="3.00", count="5"),
        fetched_at=clock() - timedelta(days=days_old),
    )


class TestLoad:
    def test_requires_load(self, memory_kv, clock):
        store = TTLCacheStore(memory_kv, clock=clock)
        assert store.loaded is False
        with pytest.raises(CacheNotLoadedError):
            store.get(KEY_A)
        with pytest.raises(CacheNotLoadedError):
            store.put(KEY_A, Payload())

    def test_purges_expired_and_persists(self, clock):
        kv = MemoryKVStore({
            KEY_A: _entry(KEY_A, clock, days_old=1),
            KEY_B: _entry(KEY_B, clock, days_old=8),
        })
        store = TTLCacheStore(kv, clock=clock)

        purged = store.load(timedelta(days=7))

        assert purged == 1
        assert store.keys() == [KEY_A]
        assert set(kv.read_all()) == {KEY_A}
        assert kv.write_count == 1

    def test_nothing_expired_skips_write(self, clock):
        kv = MemoryKVStore({KEY_A: _entry(KEY_A, clock, days_old=1)})
        store = TTLCacheStore(kv, clock=clock)
        assert store.load(timedelta(days=7)) == 0
        assert kv.write_count == 0

    def test_drops_entries_stored_under_wrong_key(self, clock):
        kv = MemoryKVStore({KEY_A: _entry(KEY_B, clock)})
        store = TTLCacheStore(kv, clock=clock)
        assert store.load(timedelta(days=7)) == 1
        assert len(store) == 0

    def test_invalid_persisted_entries_purged_and_rewritten(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        JsonKVStore(path).write_all({KEY_A: _entry(KEY_A, clock, days_old=1)})
        document = json.loads(path.read_text(encoding="utf-8"))
        document["entries"]["bad"] = {"key": "bad"}
        document["entries"][KEY_B] = dict(
            document["entries"][KEY_A], key=KEY_B, fetched_at="2026-03-01T12:00:00"
        )
        path.write_text(json.dumps(document), encoding="utf-8")
        store = TTLCacheStore(JsonKVStore(path), clock=clock)

        assert store.load(timedelta(days=7)) == 2

        assert store.keys() == [KEY_A]
        persisted = json.loads(path.read_text(encoding="utf-8"))["entries"]
        assert list(persisted) == [KEY_A]

    def test_mapping_that_is_not_an_object_loads_empty(self, tmp_path, clock):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({"version": 1, "entries": []}), encoding="utf-8")
        store = TTLCacheStore(JsonKVStore(path), clock=clock)

        assert store.load(timedelta(days=7)) == 0
        assert len(store) == 0

    def test_negative_ttl_rejected(self, memory_kv, clock):
        with pytest.raises(ValueError):
            TTLCacheStore(memory_kv, clock=clock).load(timedelta(days=-1))

    def test_ttl_property(self, cache):
        assert cache.ttl == timedelta(days=7)


class TestGetPut:
    def test_put_then_get(self, cache, memory_kv, sample_payload):
        cache.put(KEY_A, sample_payload)
        assert cache.get(KEY_A) == sample_payload
        assert cache.contains(KEY_A)
        assert memory_kv.read_all()[KEY_A].payload == sample_payload

    def test_get_missing(self, cache):
        assert cache.get(KEY_A) is None
        assert cache.contains(KEY_A) is False

    def test_put_overwrites_and_restamps(self, cache, clock, sample_payload):
        cache.put(KEY_A, Payload(rating="1.00"))
        clock.advance(days=3)
        cache.put(KEY_A, sample_payload)
        assert cache.get(KEY_A) == sample_payload
        assert cache.stats().newest == clock()

    def test_entry_valid_until_ttl_elapses(self, cache, clock, sample_payload):
        cache.put(KEY_A, sample_payload)
        clock.advance(days=7)
        assert cache.get(KEY_A) == sample_payload

    def test_expired_entry_purged_lazily(self, cache, clock, memory_kv, sample_payload):
        cache.put(KEY_A, sample_payload)
        clock.advance(days=7, seconds=1)

        assert cache.get(KEY_A) is None
        assert KEY_A not in memory_kv.read_all()
        assert len(cache) == 0

    def test_zero_ttl_never_serves(self, memory_kv, clock, sample_payload):
        store = TTLCacheStore(memory_kv, clock=clock)
        store.load(timedelta(0))
        store.put(KEY_A, sample_payload)
        clock.advance(seconds=1)
        assert store.get(KEY_A) is None


class TestRemoveAndClear:
    def test_remove(self, cache, memory_kv, sample_payload):
        cache.put(KEY_A, sample_payload)
        assert cache.remove(KEY_A) is True
        assert cache.remove(KEY_A) is False
        assert memory_kv.read_all() == {}

    def test_remove_all_counts_present_keys(self, cache, memory_kv, sample_payload):
        cache.put(KEY_A, sample_payload)
        cache.put(KEY_B, sample_payload)
        writes = memory_kv.write_count

        assert cache.remove_all([KEY_A, KEY_A, "https://example.com/none"]) == 1
        assert cache.keys() == [KEY_B]
        assert memory_kv.write_count == writes + 1

    def test_remove_nothing_skips_write(self, cache, memory_kv):
        writes = memory_kv.write_count
        assert cache.remove_all(["https://example.com/none"]) == 0
        assert memory_kv.write_count == writes

    def test_clear(self, cache, memory_kv, sample_payload):
        cache.put(KEY_A, sample_payload)
        cache.clear()
        assert len(cache) == 0
        assert memory_kv.read_all() == {}

    def test_clear_twice_then_get_absent(self, cache, memory_kv, sample_payload):
        cache.put(KEY_A, sample_payload)
        cache.clear()
        cache.clear()
        assert cache.get(KEY_A) is None
        assert cache.keys() == []
        assert memory_kv.read_all() == {}

    def test_close_closes_backend(self, clock):
        kv = MagicMock(spec=MemoryKVStore)
        kv.read_all.return_value = {}
        kv.backend_name = "mock"
        kv.skipped = 0
        store = TTLCacheStore(kv, clock=clock)
        store.load(timedelta(days=7))

        store.close()

        kv.close.assert_called_once_with()


class TestPersistenceFailure:
    def test_failed_write_rolls_back_memory(self, clock, sample_payload):
        kv = MagicMock(spec=MemoryKVStore)
        kv.read_all.return_value = {}
        kv.backend_name = "mock"
        kv.skipped = 0
        store = TTLCacheStore(kv, clock=clock)
        store.load(timedelta(days=7))

        kv.write_all.side_effect = OSError("read-only file system")
        with pytest.raises(OSError):
            store.put(KEY_A, sample_payload)

        assert store.get(KEY_A) is None
        assert len(store) == 0


class TestStats:
    def test_empty(self, cache):
        stats = cache.stats()
        assert stats.entries == 0
        assert stats.ttl_days == 7
        assert stats.oldest is None

    def test_oldest_newest(self, cache, clock, sample_payload):
        first = clock()
        cache.put(KEY_B, sample_payload)
        clock.advance(hours=2)
        cache.put(KEY_A, sample_payload)

        stats = cache.stats()
        assert stats.entries == 2
        assert stats.oldest == first
        assert stats.newest == clock()
        assert stats.keys == [KEY_A, KEY_B]
