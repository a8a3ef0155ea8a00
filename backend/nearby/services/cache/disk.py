"""SQLite-backed disk tier for the HTTP response cache.

Entries are bounded by total body size; the least recently accessed rows are
deleted first when the capacity is exceeded.
"""

import json
import logging
import os
import sqlite3
import time
from typing import Optional

from .entry import CacheEntry

logger = logging.getLogger(__name__)


class DiskCacheTier:
    """Byte-bounded LRU store on disk.

    Not thread-safe on its own; ``TieredHTTPCache`` serializes access.
    Pass ``":memory:"`` as ``db_path`` for a throwaway database.
    """

    def __init__(self, db_path: str, max_bytes: int) -> None:
        self.db_path = db_path
        self._max_bytes = max_bytes
        directory = os.path.dirname(db_path)
        if db_path != ":memory:" and directory:
            os.makedirs(directory, exist_ok=True)
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_schema()
        # Monotonic access counter keeps LRU order stable within one clock tick
        row = self._conn.execute("SELECT COALESCE(MAX(last_access), 0) FROM http_cache").fetchone()
        self._clock = int(row[0])

    def _init_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS http_cache (
                key TEXT PRIMARY KEY,
                status_code INTEGER NOT NULL,
                headers_json TEXT NOT NULL,
                body BLOB NOT NULL,
                size INTEGER NOT NULL,
                stored_at REAL NOT NULL,
                last_access INTEGER NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_http_cache_last_access
            ON http_cache(last_access)
            """
        )
        self._conn.commit()

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    @property
    def total_bytes(self) -> int:
        row = self._conn.execute("SELECT COALESCE(SUM(size), 0) FROM http_cache").fetchone()
        return int(row[0])

    def __len__(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) FROM http_cache").fetchone()
        return int(row[0])

    def __contains__(self, key: str) -> bool:
        row = self._conn.execute("SELECT 1 FROM http_cache WHERE key=?", (key,)).fetchone()
        return row is not None

    def get(self, key: str) -> Optional[CacheEntry]:
        row = self._conn.execute(
            "SELECT status_code, headers_json, body, stored_at FROM http_cache WHERE key=?",
            (key,),
        ).fetchone()
        if row is None:
            return None
        status_code, headers_json, body, stored_at = row
        self._conn.execute("UPDATE http_cache SET last_access=? WHERE key=?", (self._tick(), key))
        self._conn.commit()
        try:
            headers = json.loads(headers_json)
        except json.JSONDecodeError:
            headers = {}
        return CacheEntry(
            body=bytes(body),
            status_code=status_code,
            headers=headers,
            stored_at=stored_at,
        )

    def put(self, key: str, entry: CacheEntry) -> None:
        if entry.size > self._max_bytes:
            logger.debug(f"[CACHE] {entry.size} bytes exceeds disk capacity, not stored")
            self.delete(key)
            return
        self._conn.execute(
            """
            INSERT OR REPLACE INTO http_cache
            (key, status_code, headers_json, body, size, stored_at, last_access)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                key,
                entry.status_code,
                json.dumps(entry.headers),
                sqlite3.Binary(entry.body),
                entry.size,
                entry.stored_at or time.time(),
                self._tick(),
            ),
        )
        self._evict()
        self._conn.commit()

    def delete(self, key: str) -> bool:
        cur = self._conn.execute("DELETE FROM http_cache WHERE key=?", (key,))
        self._conn.commit()
        return cur.rowcount > 0

    def _evict(self) -> None:
        total = self.total_bytes
        while total > self._max_bytes:
            row = self._conn.execute(
                "SELECT key, size FROM http_cache ORDER BY last_access ASC LIMIT 1"
            ).fetchone()
            if row is None:
                break
            key, size = row
            self._conn.execute("DELETE FROM http_cache WHERE key=?", (key,))
            total -= size
            logger.debug(f"[CACHE] Evicted {key[:80]} from disk ({size} bytes)")

    def clear(self) -> None:
        self._conn.execute("DELETE FROM http_cache")
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
