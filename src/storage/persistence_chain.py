# src/storage/persistence_chain.py — v1
"""Best-effort multi-strategy persistence of analysis results.

Strategies run in order until one succeeds:
  1. upsert on the natural key (kind, owner_id, subject_id)
  2. plain insert
  3. named remote procedure
  4. fetch the prior record and update it in the background
  5. keep the record in memory and emit a non-fatal warning

save() never raises: every strategy failure is logged and the chain
advances. Outcomes are kept for diagnostics only.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from typing import Any, Awaitable, Callable

from careerlens.cache.memory_cache import KeyValueCache
from careerlens.core.errors import PersistenceError
from careerlens.core.models import AnalysisResult
from careerlens.pipeline.background import BackgroundTasks
from careerlens.storage.base_analysis_store import BaseAnalysisStore
from careerlens.storage.models import (
    AnalysisRecord,
    PersistenceOutcome,
    PersistenceStrategy,
)

logger = logging.getLogger(__name__)

MEMORY_WARNING = (
    "Analysis completed but could not be saved to the database. Results are temporary."
)


def build_record(
    result: AnalysisResult,
    owner_id: str,
    subject_id: str,
    details: dict[str, Any] | None = None,
) -> AnalysisRecord:
    """Persistence payload for an assembled analysis result."""
    payload = result.model_dump(mode="json")
    return AnalysisRecord(
        kind=result.kind,
        owner_id=owner_id,
        subject_id=subject_id,
        score=result.score,
        suggestions=payload["suggestions"],
        strengths=list(result.strengths),
        weaknesses=list(result.weaknesses),
        details={
            "matching_skills": list(result.matching_skills),
            "missing_skills": list(result.missing_skills),
            "confidence": result.confidence,
            **(details or {}),
        },
    )


def _json_column(value: Any, name: str) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        logger.warning("Error serializing %s: %s", name, e)
        return "[]"


def format_for_database(result: AnalysisResult) -> dict[str, Any]:
    """Column values for a profile-analysis row, with JSON-string variants."""
    payload = result.model_dump(mode="json")
    suggestions = payload["suggestions"] if isinstance(payload["suggestions"], list) else []
    strengths = payload["strengths"] if isinstance(payload["strengths"], list) else []
    weaknesses = payload["weaknesses"] if isinstance(payload["weaknesses"], list) else []
    return {
        "profile_score": result.score,
        "suggestions": suggestions,
        "strengths": strengths,
        "weaknesses": weaknesses,
        "suggestions_json": _json_column(suggestions, "suggestions"),
        "strengths_json": _json_column(strengths, "strengths"),
        "weaknesses_json": _json_column(weaknesses, "weaknesses"),
    }


class PersistenceFallbackChain:
    """Persist AnalysisRecords through ordered fallback strategies.

    Args:
        store: Durable store, or None to keep results in memory only.
        background: Supervisor for deferred updates.
        procedure_name: Remote procedure used by the third strategy.
        memory_max_size: Capacity of the in-memory fallback.
        max_outcomes: Number of recent outcomes kept for diagnostics.
    """

    def __init__(
        self,
        store: BaseAnalysisStore | None,
        background: BackgroundTasks,
        *,
        procedure_name: str = "insert_analysis",
        memory_max_size: int = 200,
        max_outcomes: int = 50,
    ) -> None:
        self._store = store
        self._background = background
        self._procedure_name = procedure_name
        self._memory: KeyValueCache[tuple[str, str, str], AnalysisRecord] = KeyValueCache(
            max_size=memory_max_size, ttl_s=float("inf")
        )
        self._outcomes: deque[PersistenceOutcome] = deque(maxlen=max_outcomes)

    async def save(self, record: AnalysisRecord) -> PersistenceOutcome:
        """Persist ``record`` with the first strategy that works. Never raises."""
        errors: list[str] = []
        outcome = await self._save_durable(record, errors)
        if outcome is None:
            self._memory.set(record.natural_key, record)
            logger.warning(
                "Keeping %s analysis for %s in memory: %s",
                record.kind, record.owner_id, "; ".join(errors) or "no durable store",
            )
            outcome = PersistenceOutcome(
                strategy="memory", saved=False, errors=errors, warning=MEMORY_WARNING
            )
        self._outcomes.append(outcome)
        return outcome

    async def _save_durable(
        self, record: AnalysisRecord, errors: list[str]
    ) -> PersistenceOutcome | None:
        store = self._store
        if store is None:
            return None

        async def upsert() -> str:
            return (await store.upsert(record)).id

        async def insert() -> str:
            return (await store.insert(record)).id

        async def procedure() -> str:
            return await store.call_procedure(self._procedure_name, record)

        strategies: list[tuple[PersistenceStrategy, Callable[[], Awaitable[str]]]] = [
            ("upsert", upsert),
            ("insert", insert),
            ("procedure", procedure),
        ]
        for strategy, attempt in strategies:
            record_id = await self._attempt(strategy, attempt, errors)
            if record_id is not None:
                logger.info("Saved %s analysis via %s (%s)", record.kind, strategy, record_id)
                return PersistenceOutcome(
                    strategy=strategy, saved=True, record_id=record_id, errors=errors
                )

        async def fetch_prior() -> str:
            prior = await store.fetch_latest(record.kind, record.owner_id, record.subject_id)
            if prior is None:
                raise PersistenceError("no prior record", strategy="fetch_and_update")
            return prior.id

        prior_id = await self._attempt("fetch_and_update", fetch_prior, errors)
        if prior_id is None:
            return None
        self._background.spawn(
            self._deferred_update(store, prior_id, record),
            name=f"persist-update-{prior_id}",
        )
        logger.info("Scheduled background update of %s analysis %s", record.kind, prior_id)
        return PersistenceOutcome(
            strategy="fetch_and_update", saved=True, record_id=prior_id, errors=errors
        )

    async def _attempt(
        self,
        strategy: PersistenceStrategy,
        fn: Callable[[], Awaitable[str]],
        errors: list[str],
    ) -> str | None:
        try:
            return await fn()
        except Exception as e:
            error = e if isinstance(e, PersistenceError) else PersistenceError(str(e), strategy)
            logger.warning("Persistence strategy %s failed: %s", strategy, error)
            errors.append(f"{strategy}: {error}")
            return None

    @staticmethod
    async def _deferred_update(
        store: BaseAnalysisStore, record_id: str, record: AnalysisRecord
    ) -> None:
        try:
            await store.update(record_id, record)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Background update of {record_id} failed: {e}", strategy="fetch_and_update"
            ) from e
        logger.info("Background update of analysis %s completed", record_id)

    def recent_outcomes(self) -> list[PersistenceOutcome]:
        return list(self._outcomes)

    def memory_records(self) -> list[AnalysisRecord]:
        """Records that could only be kept in memory, oldest first."""
        return [entry.value for entry in self._memory.snapshot().values()]
