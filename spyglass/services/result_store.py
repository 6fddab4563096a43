"""
Result Store - Durable per-query result cache

Completed result sets are stored under the exact query string and expire
after a fixed retention window. A stored set short-circuits the whole
search for that query.

Implementations:
    SqliteResultStore    persistent, expiry checked on read
    InMemoryResultStore  process-local, backed by cachetools.TTLCache
"""

import asyncio
import logging
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Optional

from cachetools import TTLCache

from spyglass.models.result import StoredResultSet

logger = logging.getLogger(__name__)


class ResultStore(ABC):
    """Storage interface used by the query orchestrator."""

    def __init__(self, retention_seconds: float):
        self.retention_seconds = retention_seconds

    @abstractmethod
    async def get(self, query: str) -> Optional[StoredResultSet]:
        """Unexpired result set for the query, if any."""
        pass

    @abstractmethod
    async def put(self, result_set: StoredResultSet) -> None:
        """Store (or replace) the result set for its query."""
        pass

    @abstractmethod
    async def remove(self, query: str) -> bool:
        pass

    @abstractmethod
    async def remove_all(self) -> int:
        pass


class InMemoryResultStore(ResultStore):
    """Process-local store; entries vanish after the retention window."""

    def __init__(self, retention_seconds: float, maxsize: int = 1024):
        super().__init__(retention_seconds)
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=retention_seconds)
        self._lock = threading.Lock()

    async def get(self, query: str) -> Optional[StoredResultSet]:
        with self._lock:
            return self._cache.get(query)

    async def put(self, result_set: StoredResultSet) -> None:
        with self._lock:
            self._cache[result_set.query] = result_set

    async def remove(self, query: str) -> bool:
        with self._lock:
            return self._cache.pop(query, None) is not None

    async def remove_all(self) -> int:
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count


class SqliteResultStore(ResultStore):
    """Persistent store; results are kept as JSON payloads keyed by query."""

    def __init__(self, retention_seconds: float, db_path: Optional[str] = None):
        """
        Args:
            retention_seconds: Age after which a stored set is treated as missing
            db_path: Path to SQLite database file. If None, uses in-memory.
        """
        super().__init__(retention_seconds)
        self.db_path = db_path or ":memory:"
        self._lock = threading.Lock()

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS results (
                    query TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    created_at REAL NOT NULL
                )
            """)
            self._conn.commit()
        logger.info(f"Result store initialized with database: {self.db_path}")

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        def locked():
            with self._lock:
                return fn(*args)
        return await asyncio.to_thread(locked)

    def _get(self, query: str) -> Optional[StoredResultSet]:
        row = self._conn.execute(
            "SELECT payload FROM results WHERE query = ?", (query,)
        ).fetchone()
        if row is None:
            return None

        result_set = StoredResultSet.model_validate_json(row[0])
        if result_set.is_expired(self.retention_seconds):
            self._conn.execute("DELETE FROM results WHERE query = ?", (query,))
            self._conn.commit()
            logger.info(f"Expired stored results for query: {query}")
            return None
        return result_set

    async def get(self, query: str) -> Optional[StoredResultSet]:
        return await self._run(self._get, query)

    def _put(self, result_set: StoredResultSet) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO results (query, payload, created_at) VALUES (?, ?, ?)",
            (result_set.query, result_set.model_dump_json(), result_set.created_at.timestamp())
        )
        self._conn.commit()

    async def put(self, result_set: StoredResultSet) -> None:
        await self._run(self._put, result_set)

    def _remove(self, query: str) -> bool:
        cursor = self._conn.execute("DELETE FROM results WHERE query = ?", (query,))
        self._conn.commit()
        return cursor.rowcount > 0

    async def remove(self, query: str) -> bool:
        return await self._run(self._remove, query)

    def _remove_all(self) -> int:
        cursor = self._conn.execute("DELETE FROM results")
        self._conn.commit()
        return cursor.rowcount

    async def remove_all(self) -> int:
        return await self._run(self._remove_all)

    def _purge_expired(self) -> int:
        cutoff = time.time() - self.retention_seconds
        cursor = self._conn.execute("DELETE FROM results WHERE created_at <= ?", (cutoff,))
        self._conn.commit()
        return cursor.rowcount

    async def purge_expired(self) -> int:
        """Delete every expired result set. Returns the number removed."""
        removed = await self._run(self._purge_expired)
        if removed:
            logger.info(f"Purged {removed} expired result sets")
        return removed

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def create_result_store(database_path: Optional[str], retention_minutes: float) -> ResultStore:
    """SQLite store when a database path is configured, in-memory otherwise."""
    retention_seconds = retention_minutes * 60
    if database_path:
        return SqliteResultStore(retention_seconds, database_path)
    return InMemoryResultStore(retention_seconds)
