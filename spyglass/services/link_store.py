"""
Link Store - Durable site catalog

SQLite-backed storage for Link records (sites with a discovered card
selector). Every live query runs against get_all(), fastest sites first.

Usage:
    store = LinkStore(settings.database_path)
    await store.upsert_many(report.links)
    links = await store.get_all()
"""

import asyncio
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

from spyglass.models.link import Link

logger = logging.getLogger(__name__)


class LinkStore:
    """
    Catalog of searchable sites.

    Blocking sqlite calls run in worker threads; a lock serialises access
    to the shared connection.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the link store.

        Args:
            db_path: Path to SQLite database file. If None, uses in-memory.
        """
        self.db_path = db_path or ":memory:"
        self._lock = threading.Lock()
        self._conn = self._connect()
        self._initialize_schema()

    def _connect(self) -> sqlite3.Connection:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # check_same_thread=False allows use from worker threads
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize_schema(self) -> None:
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS links (
                    url TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    category TEXT NOT NULL,
                    starred INTEGER NOT NULL DEFAULT 0,
                    search_url TEXT NOT NULL,
                    card_selector TEXT NOT NULL,
                    response_time REAL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_links_response_time
                ON links(response_time)
            """)
            self._conn.commit()
        logger.info(f"Link store initialized with database: {self.db_path}")

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        def locked():
            with self._lock:
                return fn(*args)
        return await asyncio.to_thread(locked)

    @staticmethod
    def _row_to_link(row: sqlite3.Row) -> Link:
        return Link(
            url=row["url"],
            title=row["title"],
            category=row["category"],
            starred=bool(row["starred"]),
            search_url=row["search_url"],
            card_selector=row["card_selector"],
            response_time=row["response_time"],
        )

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def _get_all(self) -> List[Link]:
        rows = self._conn.execute("""
            SELECT * FROM links
            ORDER BY response_time IS NULL, response_time ASC, title ASC
        """).fetchall()
        return [self._row_to_link(row) for row in rows]

    async def get_all(self) -> List[Link]:
        """All links, fastest response time first (unknown times last)."""
        return await self._run(self._get_all)

    def _get(self, url: str) -> Optional[Link]:
        row = self._conn.execute("SELECT * FROM links WHERE url = ?", (url,)).fetchone()
        return self._row_to_link(row) if row else None

    async def get(self, url: str) -> Optional[Link]:
        return await self._run(self._get, url)

    def _count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM links").fetchone()[0]

    async def count(self) -> int:
        return await self._run(self._count)

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def _upsert_many(self, links: List[Link]) -> int:
        now = datetime.now(timezone.utc).isoformat()
        self._conn.executemany("""
            INSERT INTO links (url, title, category, starred, search_url, card_selector, response_time, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(url) DO UPDATE SET
                title = excluded.title,
                category = excluded.category,
                starred = excluded.starred,
                search_url = excluded.search_url,
                card_selector = excluded.card_selector,
                response_time = excluded.response_time,
                updated_at = excluded.updated_at
        """, [
            (link.url, link.title, link.category, int(link.starred), link.search_url,
             link.card_selector, link.response_time, now)
            for link in links
        ])
        self._conn.commit()
        return len(links)

    async def upsert_many(self, links: Iterable[Link]) -> int:
        """Insert or replace links by URL. Returns the number written."""
        links = list(links)
        if not links:
            return 0
        written = await self._run(self._upsert_many, links)
        logger.info(f"Upserted {written} links")
        return written

    def _remove(self, url: str) -> bool:
        cursor = self._conn.execute("DELETE FROM links WHERE url = ?", (url,))
        self._conn.commit()
        return cursor.rowcount > 0

    async def remove(self, url: str) -> bool:
        return await self._run(self._remove, url)

    def _remove_all(self) -> int:
        cursor = self._conn.execute("DELETE FROM links")
        self._conn.commit()
        return cursor.rowcount

    async def remove_all(self) -> int:
        return await self._run(self._remove_all)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
