# src/storage/models.py — v2
"""Persistence domain models: AnalysisRecord, StoredAnalysis, PersistenceOutcome."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

AnalysisKind = Literal["resume", "linkedin"]
PersistenceStrategy = Literal[
    "upsert", "insert", "procedure", "fetch_and_update", "memory"
]


class AnalysisRecord(BaseModel):
    """Persistence payload. Natural key is (kind, owner_id, subject_id)."""

    model_config = ConfigDict(frozen=True)

    kind: AnalysisKind
    owner_id: str
    subject_id: str
    score: int = Field(ge=0, le=100)
    suggestions: list[Any] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def natural_key(self) -> tuple[str, str, str]:
        return (self.kind, self.owner_id, self.subject_id)


class StoredAnalysis(AnalysisRecord):
    """A record as held by a store, with its identity and timestamps."""

    id: str
    created_at: datetime
    updated_at: datetime | None = None


class PersistenceOutcome(BaseModel):
    """Diagnostics for one PersistenceFallbackChain.save() call."""

    strategy: PersistenceStrategy
    saved: bool
    record_id: str | None = None
    errors: list[str] = Field(default_factory=list)
    warning: str | None = None
