# src/cache/sqlite_store.py — v2
"""SQLite-based durable cache (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3 — no external dependency.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from careerlens.cache.base_cache_store import BaseCacheStore
from careerlens.cache.models import DurableRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    timestamp REAL NOT NULL
);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed durable cache store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> DurableRecord | None:
        row = self._conn.execute(
            "SELECT data, timestamp FROM cache_entries WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        try:
            return DurableRecord(data=json.loads(row[0]), timestamp=row[1])
        except json.JSONDecodeError as e:
            logger.warning("Removing unreadable cache entry %s: %s", key, e)
            await self.delete(key)
            return None

    async def put(self, key: str, record: DurableRecord) -> None:
        payload = record.model_dump(mode="json")
        self._conn.execute(
            """INSERT OR REPLACE INTO cache_entries (key, data, timestamp)
               VALUES (?, ?, ?)""",
            (key, json.dumps(payload["data"]), record.timestamp),
        )
        self._conn.commit()

    async def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
        self._conn.commit()

    async def keys(self, prefix: str = "") -> list[str]:
        rows = self._conn.execute(
            "SELECT key FROM cache_entries WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [row[0] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
