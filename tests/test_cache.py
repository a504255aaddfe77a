"""Tests for the in-memory and disk caches."""

import json
from datetime import date, timedelta

from alphacloud.cache.disk import CACHE_FILE_NAME, DiskCache, default_cache_path
from alphacloud.cache.memory import QueryCache

PAST_DATE = date(2023, 5, 1)


class TestQueryCache:
    """Test the per-date query cache."""

    def test_store_and_lookup(self):
        cache = QueryCache("test")

        assert cache.store(PAST_DATE, {"epv": 1})

        assert cache.lookup(PAST_DATE) == {"epv": 1}
        assert PAST_DATE in cache
        assert len(cache) == 1

    def test_lookup_missing(self):
        assert QueryCache().lookup(PAST_DATE) is None

    def test_today_not_stored(self):
        """Test data of the current day is never cached."""
        cache = QueryCache()

        assert not cache.store(date.today(), {"epv": 1})
        assert len(cache) == 0

    def test_yesterday_stored(self):
        cache = QueryCache()

        assert cache.store(date.today() - timedelta(days=1), [1])

    def test_empty_payload_not_stored(self):
        cache = QueryCache()

        assert not cache.store(PAST_DATE, [])
        assert not cache.store(PAST_DATE, {})
        assert not cache.store(PAST_DATE, None)
        assert PAST_DATE not in cache

    def test_discard(self):
        cache = QueryCache()
        cache.store(PAST_DATE, [1])
        cache.store(PAST_DATE + timedelta(days=1), [2])

        cache.discard(PAST_DATE)
        cache.discard(date(2000, 1, 1))

        assert PAST_DATE not in cache
        assert len(cache) == 1

    def test_clear(self):
        cache = QueryCache()
        cache.store(PAST_DATE, [1])

        cache.clear()

        assert len(cache) == 0


class TestDiskCache:
    """Test the storage systems cache file."""

    def test_default_path(self, tmp_path):
        """Test the default location is the user cache directory."""
        assert DiskCache().path == tmp_path / "cache" / CACHE_FILE_NAME

    def test_explicit_directory(self, tmp_path):
        assert default_cache_path(tmp_path) == tmp_path / CACHE_FILE_NAME

    def test_write_and_read(self, disk_cache):
        array = [{"sysSn": "SERIAL", "popv": 10}]

        assert disk_cache.write(array)

        assert disk_cache.read() == array
        assert disk_cache.path.read_text() == json.dumps(array, separators=(",", ":"))

    def test_write_replaces(self, disk_cache):
        disk_cache.write([1, 2, 3])
        disk_cache.write([4])

        assert disk_cache.read() == [4]

    def test_read_missing(self, disk_cache):
        assert disk_cache.read() is None

    def test_read_garbled(self, disk_cache):
        disk_cache.path.parent.mkdir(parents=True)
        disk_cache.path.write_text("{not json")

        assert disk_cache.read() is None

    def test_read_not_an_array(self, disk_cache):
        disk_cache.path.parent.mkdir(parents=True)
        disk_cache.path.write_text('{"sysSn": "SERIAL"}')

        assert disk_cache.read() is None

    def test_write_failure(self, tmp_path):
        """Test a path that cannot be written reports failure."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        cache = DiskCache(blocker / CACHE_FILE_NAME)

        assert not cache.write([1])
        assert cache.read() is None
