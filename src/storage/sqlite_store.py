# src/storage/sqlite_store.py — v1
"""SQLite-based analysis store (STORE_BACKEND=sqlite).

Uses stdlib sqlite3 — no external dependency. Named procedures are
Python callables run inside one transaction.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from careerlens.core.errors import PersistenceError
from careerlens.storage.base_analysis_store import BaseAnalysisStore
from careerlens.storage.models import AnalysisKind, AnalysisRecord, StoredAnalysis

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS analyses (
    id TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    owner_id TEXT NOT NULL,
    subject_id TEXT NOT NULL,
    score INTEGER NOT NULL,
    suggestions TEXT NOT NULL DEFAULT '[]',
    strengths TEXT NOT NULL DEFAULT '[]',
    weaknesses TEXT NOT NULL DEFAULT '[]',
    details TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL,
    updated_at TEXT,
    UNIQUE (kind, owner_id, subject_id)
);
CREATE INDEX IF NOT EXISTS idx_analyses_owner ON analyses (kind, owner_id, created_at);
"""

_COLUMNS = (
    "id, kind, owner_id, subject_id, score, suggestions, strengths, "
    "weaknesses, details, created_at, updated_at"
)

Procedure = Callable[[sqlite3.Connection, AnalysisRecord], str]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _content(record: AnalysisRecord) -> tuple[int, str, str, str, str]:
    return (
        record.score,
        json.dumps(record.suggestions),
        json.dumps(record.strengths),
        json.dumps(record.weaknesses),
        json.dumps(record.details),
    )


def _insert_row(conn: sqlite3.Connection, record: AnalysisRecord) -> str:
    record_id = uuid.uuid4().hex
    conn.execute(
        f"INSERT INTO analyses ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, NULL)",
        (record_id, *record.natural_key, *_content(record), _now()),
    )
    return record_id


def insert_analysis_procedure(conn: sqlite3.Connection, record: AnalysisRecord) -> str:
    """Server-side insert: validates the payload then inserts it."""
    if not record.owner_id:
        raise PersistenceError("owner_id is required", strategy="procedure")
    return _insert_row(conn, record)


class SqliteAnalysisStore(BaseAnalysisStore):
    """SQLite-backed analysis store."""

    def __init__(
        self,
        db_path: Path | str,
        procedures: dict[str, Procedure] | None = None,
    ) -> None:
        self._db_path = Path(db_path).expanduser() if str(db_path) != ":memory:" else None
        if self._db_path is not None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path or ":memory:"))
        self._conn.row_factory = sqlite3.Row
        if self._db_path is not None:
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self._procedures: dict[str, Procedure] = {
            "insert_analysis": insert_analysis_procedure,
            **(procedures or {}),
        }

    async def upsert(self, record: AnalysisRecord) -> StoredAnalysis:
        now = _now()
        with self._conn:
            self._conn.execute(
                f"""INSERT INTO analyses ({_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, NULL)
                    ON CONFLICT (kind, owner_id, subject_id) DO UPDATE SET
                        score = excluded.score,
                        suggestions = excluded.suggestions,
                        strengths = excluded.strengths,
                        weaknesses = excluded.weaknesses,
                        details = excluded.details,
                        updated_at = ?""",
                (uuid.uuid4().hex, *record.natural_key, *_content(record), now, now),
            )
        return self._get_by_key(record)

    async def insert(self, record: AnalysisRecord) -> StoredAnalysis:
        with self._conn:
            record_id = _insert_row(self._conn, record)
        return self._get_by_id(record_id)

    async def call_procedure(self, name: str, record: AnalysisRecord) -> str:
        procedure = self._procedures.get(name)
        if procedure is None:
            raise PersistenceError(f"Unknown procedure: {name!r}", strategy="procedure")
        with self._conn:
            return procedure(self._conn, record)

    async def fetch_latest(
        self, kind: AnalysisKind, owner_id: str, subject_id: str | None = None
    ) -> StoredAnalysis | None:
        query = f"SELECT {_COLUMNS} FROM analyses WHERE kind = ? AND owner_id = ?"
        params: list[str] = [kind, owner_id]
        if subject_id is not None:
            query += " AND subject_id = ?"
            params.append(subject_id)
        query += " ORDER BY created_at DESC, rowid DESC LIMIT 1"
        row = self._conn.execute(query, params).fetchone()
        return self._to_stored(row) if row is not None else None

    async def update(self, record_id: str, record: AnalysisRecord) -> None:
        with self._conn:
            cursor = self._conn.execute(
                """UPDATE analyses SET score = ?, suggestions = ?, strengths = ?,
                       weaknesses = ?, details = ?, updated_at = ?
                   WHERE id = ?""",
                (*_content(record), _now(), record_id),
            )
        if cursor.rowcount == 0:
            raise PersistenceError(
                f"No analysis with id {record_id!r}", strategy="fetch_and_update"
            )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- Internals ---

    def _get_by_id(self, record_id: str) -> StoredAnalysis:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM analyses WHERE id = ?", (record_id,)
        ).fetchone()
        return self._to_stored(row)

    def _get_by_key(self, record: AnalysisRecord) -> StoredAnalysis:
        row = self._conn.execute(
            f"""SELECT {_COLUMNS} FROM analyses
                WHERE kind = ? AND owner_id = ? AND subject_id = ?""",
            record.natural_key,
        ).fetchone()
        return self._to_stored(row)

    @staticmethod
    def _to_stored(row: sqlite3.Row) -> StoredAnalysis:
        return StoredAnalysis(
            id=row["id"],
            kind=row["kind"],
            owner_id=row["owner_id"],
            subject_id=row["subject_id"],
            score=row["score"],
            suggestions=json.loads(row["suggestions"]),
            strengths=json.loads(row["strengths"]),
            weaknesses=json.loads(row["weaknesses"]),
            details=json.loads(row["details"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
        )
