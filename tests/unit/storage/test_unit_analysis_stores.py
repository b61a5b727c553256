# tests/unit/storage/test_unit_analysis_stores.py — v1
"""Tests for the SQLite and (mocked) Supabase analysis stores and the factory."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock

import pytest

from careerlens.config.settings import Settings
from careerlens.core.errors import PersistenceError
from careerlens.storage.base_analysis_store import BaseAnalysisStore
from careerlens.storage.models import AnalysisRecord
from careerlens.storage.sqlite_store import SqliteAnalysisStore
from careerlens.storage.store_factory import create_analysis_store


@pytest.fixture
def record() -> AnalysisRecord:
    return AnalysisRecord(
        kind="linkedin",
        owner_id="user-1",
        subject_id="https://www.linkedin.com/in/jane",
        score=72,
        suggestions=[{"section": "skills", "text": "Add skills", "priority": "high"}],
        strengths=["Clear headline"],
        weaknesses=["Few skills"],
        details={"confidence": "full"},
    )


@pytest.fixture
def store():
    s = SqliteAnalysisStore(":memory:")
    yield s
    s.close()


class TestBaseAnalysisStore:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseAnalysisStore()  # type: ignore[abstract]


class TestSqliteAnalysisStore:
    @pytest.mark.asyncio
    async def test_insert_roundtrip(self, store, record):
        stored = await store.insert(record)
        assert stored.id
        assert stored.score == 72
        assert stored.suggestions[0]["section"] == "skills"
        assert stored.details == {"confidence": "full"}
        assert stored.updated_at is None

    @pytest.mark.asyncio
    async def test_insert_duplicate_key_fails(self, store, record):
        await store.insert(record)
        with pytest.raises(Exception):
            await store.insert(record)

    @pytest.mark.asyncio
    async def test_upsert_updates_in_place(self, store, record):
        first = await store.upsert(record)
        second = await store.upsert(record.model_copy(update={"score": 90}))
        assert second.id == first.id
        assert second.score == 90
        assert second.updated_at is not None

    @pytest.mark.asyncio
    async def test_procedure_inserts(self, store, record):
        record_id = await store.call_procedure("insert_analysis", record)
        latest = await store.fetch_latest("linkedin", "user-1")
        assert latest is not None
        assert latest.id == record_id

    @pytest.mark.asyncio
    async def test_unknown_procedure(self, store, record):
        with pytest.raises(PersistenceError, match="Unknown procedure"):
            await store.call_procedure("nope", record)

    @pytest.mark.asyncio
    async def test_custom_procedure(self, record):
        calls = []

        def proc(conn, rec):
            calls.append(rec.owner_id)
            return "custom-id"

        s = SqliteAnalysisStore(":memory:", procedures={"custom": proc})
        try:
            assert await s.call_procedure("custom", record) == "custom-id"
        finally:
            s.close()
        assert calls == ["user-1"]

    @pytest.mark.asyncio
    async def test_fetch_latest_filters(self, store, record):
        await store.insert(record)
        other = record.model_copy(update={"subject_id": "https://www.linkedin.com/in/bob"})
        await store.insert(other)
        latest = await store.fetch_latest("linkedin", "user-1", record.subject_id)
        assert latest is not None
        assert latest.subject_id == record.subject_id
        newest = await store.fetch_latest("linkedin", "user-1")
        assert newest is not None
        assert newest.subject_id == other.subject_id
        assert await store.fetch_latest("resume", "user-1") is None

    @pytest.mark.asyncio
    async def test_update(self, store, record):
        stored = await store.insert(record)
        await store.update(stored.id, record.model_copy(update={"score": 10}))
        latest = await store.fetch_latest("linkedin", "user-1")
        assert latest.score == 10
        assert latest.updated_at is not None

    @pytest.mark.asyncio
    async def test_update_missing(self, store, record):
        with pytest.raises(PersistenceError):
            await store.update("missing", record)

    @pytest.mark.asyncio
    async def test_file_backed(self, tmp_path, record):
        path = tmp_path / "nested" / "analyses.db"
        s = SqliteAnalysisStore(path)
        await s.insert(record)
        s.close()
        reopened = SqliteAnalysisStore(path)
        try:
            assert (await reopened.fetch_latest("linkedin", "user-1")) is not None
        finally:
            reopened.close()


def _supabase_store(client: MagicMock):
    from careerlens.storage.supabase_store import SupabaseAnalysisStore

    store = SupabaseAnalysisStore.__new__(SupabaseAnalysisStore)
    store._client = client
    store._table = "analyses"
    return store


def _row(record: AnalysisRecord, **extra) -> dict:
    return {
        **record.model_dump(mode="json"),
        "id": "row-1",
        "created_at": "2026-01-01T00:00:00+00:00",
        **extra,
    }


class TestSupabaseAnalysisStore:
    @pytest.mark.asyncio
    async def test_upsert(self, record):
        client = MagicMock()
        table = client.table.return_value
        table.upsert.return_value.execute.return_value.data = [_row(record)]
        stored = await _supabase_store(client).upsert(record)
        assert stored.id == "row-1"
        _, kwargs = table.upsert.call_args
        assert kwargs["on_conflict"] == "kind,owner_id,subject_id"

    @pytest.mark.asyncio
    async def test_insert_no_row(self, record):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.return_value.data = []
        with pytest.raises(PersistenceError):
            await _supabase_store(client).insert(record)

    @pytest.mark.asyncio
    async def test_procedure_params(self, record):
        client = MagicMock()
        client.rpc.return_value.execute.return_value.data = [{"id": 42}]
        record_id = await _supabase_store(client).call_procedure("insert_analysis", record)
        assert record_id == "42"
        name, params = client.rpc.call_args.args
        assert name == "insert_analysis"
        assert params["p_owner_id"] == "user-1"
        assert params["p_score"] == 72

    @pytest.mark.asyncio
    async def test_procedure_without_id(self, record):
        client = MagicMock()
        client.rpc.return_value.execute.return_value.data = None
        with pytest.raises(PersistenceError, match="no id"):
            await _supabase_store(client).call_procedure("insert_analysis", record)

    @pytest.mark.asyncio
    async def test_fetch_latest_empty(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value.eq.return_value
        query.order.return_value.limit.return_value.execute.return_value.data = []
        assert await _supabase_store(client).fetch_latest("linkedin", "user-1") is None

    @pytest.mark.asyncio
    async def test_update_missing(self, record):
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(PersistenceError):
            await _supabase_store(client).update("row-1", record)

    def test_import_error_without_supabase(self, monkeypatch):
        from careerlens.storage.supabase_store import SupabaseAnalysisStore

        monkeypatch.setitem(sys.modules, "supabase", None)
        with pytest.raises(ImportError, match="supabase"):
            SupabaseAnalysisStore(url="https://x.supabase.co", key="k")


class TestStoreFactory:
    def test_none(self):
        assert create_analysis_store(Settings(_env_file=None, store_backend="none")) is None

    def test_sqlite(self, tmp_path):
        store = create_analysis_store(
            Settings(_env_file=None, store_backend="sqlite", store_db_path=tmp_path / "a.db")
        )
        try:
            assert isinstance(store, SqliteAnalysisStore)
        finally:
            store.close()

    def test_supabase_requires_credentials(self):
        settings = Settings(_env_file=None).model_copy(
            update={"store_backend": "supabase", "supabase_url": "", "supabase_key": ""}
        )
        with pytest.raises(ValueError, match="SUPABASE_URL"):
            create_analysis_store(settings)
