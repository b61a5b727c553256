# src/storage/base_analysis_store.py — v1
"""Abstract durable analysis store interface.

Each operation is one strategy of the persistence fallback chain. Any
exception raised by an implementation is handled by the chain.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from careerlens.storage.models import AnalysisKind, AnalysisRecord, StoredAnalysis


class BaseAnalysisStore(ABC):
    """Unified interface for analysis storage backends."""

    @abstractmethod
    async def upsert(self, record: AnalysisRecord) -> StoredAnalysis:
        """Insert or update on the natural key (kind, owner_id, subject_id)."""

    @abstractmethod
    async def insert(self, record: AnalysisRecord) -> StoredAnalysis:
        """Plain insert. Fails if the natural key already exists."""

    @abstractmethod
    async def call_procedure(self, name: str, record: AnalysisRecord) -> str:
        """Run the named remote procedure. Returns the new record id."""

    @abstractmethod
    async def fetch_latest(
        self, kind: AnalysisKind, owner_id: str, subject_id: str | None = None
    ) -> StoredAnalysis | None:
        """Most recently created record of ``owner_id``, or None."""

    @abstractmethod
    async def update(self, record_id: str, record: AnalysisRecord) -> None:
        """Overwrite the content of an existing record."""

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""
