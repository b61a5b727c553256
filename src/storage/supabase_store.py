# src/storage/supabase_store.py — v1
"""Supabase (PostgREST) analysis store (STORE_BACKEND=supabase).

Requires 'supabase' package: pip install supabase.
The table needs a unique constraint on (kind, owner_id, subject_id) and
the named procedure must accept p_kind, p_owner_id, p_subject_id,
p_score, p_suggestions, p_strengths, p_weaknesses and p_details.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from careerlens.core.errors import PersistenceError
from careerlens.storage.base_analysis_store import BaseAnalysisStore
from careerlens.storage.models import AnalysisKind, AnalysisRecord, StoredAnalysis

logger = logging.getLogger(__name__)

_CONFLICT_COLUMNS = "kind,owner_id,subject_id"


class SupabaseAnalysisStore(BaseAnalysisStore):
    """Supabase-backed analysis store."""

    def __init__(self, url: str, key: str, table: str = "analyses") -> None:
        try:
            from supabase import create_client
        except ImportError as e:
            raise ImportError(
                "supabase package required: pip install supabase"
            ) from e

        self._client = create_client(url, key)
        self._table = table

    async def upsert(self, record: AnalysisRecord) -> StoredAnalysis:
        response = (
            self._client.table(self._table)
            .upsert(_row(record), on_conflict=_CONFLICT_COLUMNS)
            .execute()
        )
        return _single(response.data, "upsert")

    async def insert(self, record: AnalysisRecord) -> StoredAnalysis:
        response = self._client.table(self._table).insert(_row(record)).execute()
        return _single(response.data, "insert")

    async def call_procedure(self, name: str, record: AnalysisRecord) -> str:
        params = {f"p_{column}": value for column, value in _row(record).items()}
        response = self._client.rpc(name, params).execute()
        data = response.data
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict) or "id" not in data:
            raise PersistenceError(
                f"Procedure {name!r} returned no id", strategy="procedure"
            )
        return str(data["id"])

    async def fetch_latest(
        self, kind: AnalysisKind, owner_id: str, subject_id: str | None = None
    ) -> StoredAnalysis | None:
        query = (
            self._client.table(self._table)
            .select("*")
            .eq("kind", kind)
            .eq("owner_id", owner_id)
        )
        if subject_id is not None:
            query = query.eq("subject_id", subject_id)
        response = query.order("created_at", desc=True).limit(1).execute()
        if not response.data:
            return None
        return StoredAnalysis.model_validate(response.data[0])

    async def update(self, record_id: str, record: AnalysisRecord) -> None:
        values = {
            k: v for k, v in _row(record).items()
            if k not in ("kind", "owner_id", "subject_id")
        }
        values["updated_at"] = datetime.now(timezone.utc).isoformat()
        response = (
            self._client.table(self._table).update(values).eq("id", record_id).execute()
        )
        if not response.data:
            raise PersistenceError(
                f"No analysis with id {record_id!r}", strategy="fetch_and_update"
            )


def _row(record: AnalysisRecord) -> dict[str, Any]:
    return record.model_dump(mode="json")


def _single(data: Any, strategy: str) -> StoredAnalysis:
    if not data:
        raise PersistenceError(f"{strategy} returned no row", strategy=strategy)
    return StoredAnalysis.model_validate(data[0])
