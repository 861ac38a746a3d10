"""Key-value stores backing the match cache.

The match cache depends only on :class:`CacheStoreBase`.  Two
implementations are provided:

- :class:`SqliteCacheStore` — durable store in a single SQLite file.  Each
  row carries an absolute expiry timestamp; expired rows are invisible to
  reads and are purged on write.
- :class:`MemoryCacheStore` — process-local dictionary with the same expiry
  semantics.  Lost on restart.

:func:`open_cache_store` picks one at startup.  If the durable store cannot
be opened the application keeps running on the memory store.

Every store method raises :class:`~ricecake.core.errors.CacheStoreError` on
failure so callers handle one exception type regardless of backend.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from ricecake.core.config import RiceCakeConfig
from ricecake.core.errors import CacheStoreError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheStoreBase(ABC):
    """Minimal key-value capability with per-key expiry."""

    name: str = "base"

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the live value for *key*, or ``None`` if absent or expired."""

    @abstractmethod
    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* under *key* for *ttl_seconds* (last writer wins)."""

    @abstractmethod
    def keys_with_prefix(self, prefix: str) -> list[str]:
        """Return all live keys starting with *prefix*, sorted."""


class MemoryCacheStore(CacheStoreBase):
    """Process-local store.

    Races between concurrent writers are benign: the last write for a key wins.
    """

    name = "memory"

    def __init__(self, clock: Clock = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return value

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    def keys_with_prefix(self, prefix: str) -> list[str]:
        now = self._clock()
        return sorted(
            key
            for key, (_, expires_at) in list(self._entries.items())
            if key.startswith(prefix) and expires_at > now
        )

    def clear(self) -> None:
        self._entries.clear()


class SqliteCacheStore(CacheStoreBase):
    """Durable store backed by a SQLite file.

    A fresh connection is opened per operation, so the store can be shared
    freely between request threads.

    Args:
        db_path: Path to the SQLite database file (parent directories are created).
        clock: Time source returning epoch seconds; injectable for tests.

    Raises:
        CacheStoreError: If the database cannot be created or opened.
    """

    name = "sqlite"

    def __init__(self, db_path: Path, clock: Clock = time.time) -> None:
        self.db_path = Path(db_path)
        self._clock = clock
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._initialize_db()
        except (OSError, sqlite3.Error) as e:
            raise CacheStoreError(f"Cannot open cache database {self.db_path}: {e}") from e
        logger.info("Initialized cache database at %s", self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=5.0)

    def _initialize_db(self) -> None:
        """Create the schema if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cache (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
                """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_cache_expires ON cache(expires_at)")
            conn.commit()

    def get(self, key: str) -> str | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM cache WHERE key = ? AND expires_at > ?",
                    (key, self._clock()),
                ).fetchone()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Cache read failed for '{key}': {e}") from e
        return row[0] if row else None

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM cache WHERE expires_at <= ?", (now,))
                conn.execute(
                    "INSERT OR REPLACE INTO cache (key, value, expires_at) VALUES (?, ?, ?)",
                    (key, value, now + ttl_seconds),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Cache write failed for '{key}': {e}") from e

    def keys_with_prefix(self, prefix: str) -> list[str]:
        # Escape LIKE wildcards so a prefix is matched literally.
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT key FROM cache WHERE key LIKE ? ESCAPE '\\' AND expires_at > ? "
                    "ORDER BY key",
                    (escaped + "%", self._clock()),
                ).fetchall()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Cache key listing failed for '{prefix}': {e}") from e
        return [row[0] for row in rows]


def open_cache_store(config: RiceCakeConfig) -> CacheStoreBase:
    """Choose the cache store once at startup.

    Args:
        config: Application configuration.

    Returns:
        A :class:`SqliteCacheStore` when ``cache_backend == "sqlite"`` and the
        database opens, otherwise a :class:`MemoryCacheStore`.
    """
    if config.cache_backend == "sqlite":
        try:
            return SqliteCacheStore(config.cache_db_path)
        except CacheStoreError as e:
            logger.warning("Durable cache unavailable, using memory cache: %s", e)
    return MemoryCacheStore()
