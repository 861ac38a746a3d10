"""Tests for ricecake.core.cache_store — memory and SQLite key-value stores."""

from __future__ import annotations

import pytest

from ricecake.core.cache_store import (
    MemoryCacheStore,
    SqliteCacheStore,
    open_cache_store,
)
from ricecake.core.config import RiceCakeConfig
from ricecake.core.errors import CacheStoreError


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, clock, temp_dir):
    """Each test runs against both backends."""
    if request.param == "memory":
        return MemoryCacheStore(clock=clock)
    return SqliteCacheStore(temp_dir / "cache.sqlite", clock=clock)


class TestStoreContract:
    """Behaviour shared by every backend."""

    def test_missing_key(self, store):
        assert store.get("menu:nothing") is None

    def test_set_then_get(self, store):
        store.set_with_expiry("menu:A+B", "/uploads/tray_1.png", 60)
        assert store.get("menu:A+B") == "/uploads/tray_1.png"

    def test_last_writer_wins(self, store):
        store.set_with_expiry("menu:A", "/uploads/first.png", 60)
        store.set_with_expiry("menu:A", "/uploads/second.png", 60)
        assert store.get("menu:A") == "/uploads/second.png"

    def test_entry_expires(self, store, clock):
        """Entries vanish once their lifetime has passed."""
        store.set_with_expiry("menu:A", "/uploads/a.png", 60)
        clock.now += 59
        assert store.get("menu:A") == "/uploads/a.png"
        clock.now += 1
        assert store.get("menu:A") is None

    def test_keys_with_prefix(self, store):
        store.set_with_expiry("menu:B", "b", 60)
        store.set_with_expiry("menu:A", "a", 60)
        store.set_with_expiry("other:C", "c", 60)
        assert store.keys_with_prefix("menu:") == ["menu:A", "menu:B"]

    def test_keys_with_prefix_skips_expired(self, store, clock):
        store.set_with_expiry("menu:old", "x", 10)
        store.set_with_expiry("menu:new", "y", 100)
        clock.now += 50
        assert store.keys_with_prefix("menu:") == ["menu:new"]

    def test_prefix_is_literal(self, store):
        """Wildcard characters in the prefix are not treated as patterns."""
        store.set_with_expiry("menu_x", "1", 60)
        store.set_with_expiry("menuAx", "2", 60)
        assert store.keys_with_prefix("menu_") == ["menu_x"]


class TestSqliteCacheStore:
    """SQLite-specific behaviour."""

    def test_survives_reopen(self, temp_dir, clock):
        """Entries persist across store instances."""
        path = temp_dir / "cache.sqlite"
        SqliteCacheStore(path, clock=clock).set_with_expiry("menu:A", "/uploads/a.png", 60)
        assert SqliteCacheStore(path, clock=clock).get("menu:A") == "/uploads/a.png"

    def test_creates_parent_directories(self, temp_dir):
        path = temp_dir / "nested" / "dir" / "cache.sqlite"
        SqliteCacheStore(path)
        assert path.exists()

    def test_unopenable_path_raises(self, temp_dir):
        """A directory where the database file should be is an error."""
        blocker = temp_dir / "blocker"
        blocker.mkdir()
        with pytest.raises(CacheStoreError):
            SqliteCacheStore(blocker)

    def test_failed_read_raises_cache_store_error(self, temp_dir):
        path = temp_dir / "cache.sqlite"
        store = SqliteCacheStore(path)
        path.unlink()
        path.mkdir()
        with pytest.raises(CacheStoreError):
            store.get("menu:A")


class TestOpenCacheStore:
    """Test backend selection at startup."""

    def test_sqlite_backend(self, temp_dir):
        config = RiceCakeConfig(
            _env_file=None,
            uploads_dir=temp_dir / "uploads",
            cache_db_path=temp_dir / "cache.sqlite",
        )
        assert isinstance(open_cache_store(config), SqliteCacheStore)

    def test_memory_backend(self, temp_dir):
        config = RiceCakeConfig(
            _env_file=None,
            uploads_dir=temp_dir / "uploads",
            cache_backend="memory",
        )
        assert isinstance(open_cache_store(config), MemoryCacheStore)

    def test_falls_back_to_memory(self, temp_dir):
        """An unusable database path degrades to the memory store."""
        blocker = temp_dir / "blocker"
        blocker.mkdir()
        config = RiceCakeConfig(
            _env_file=None,
            uploads_dir=temp_dir / "uploads",
            cache_db_path=blocker,
        )
        assert isinstance(open_cache_store(config), MemoryCacheStore)
