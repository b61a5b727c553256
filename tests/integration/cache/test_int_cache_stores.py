# tests/integration/cache/test_int_cache_stores.py — v3
"""Integration tests for TieredCache over the JSON and SQLite backends.

No external services required.
Coverage targets: tiered_cache.py, json_store.py, sqlite_store.py,
cache_factory.py, fingerprint.py
"""

from __future__ import annotations

import pytest
from pydantic import create_model

from careerlens.cache.cache_factory import create_cache_store
from careerlens.cache.fingerprint import compute_fingerprint
from careerlens.cache.memory_cache import KeyValueCache
from careerlens.cache.tiered_cache import TieredCache
from careerlens.core.models import AnalysisResult


class WallClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture(params=["json", "sqlite"])
def durable_settings(request, settings):
    return settings.model_copy(
        update={"cache_enabled": True, "cache_backend": request.param}
    )


def _tiered(store, namespace="resume_analysis", ttl_s=1800.0, clock=None):
    return TieredCache(
        namespace,
        AnalysisResult,
        KeyValueCache(max_size=10, ttl_s=ttl_s),
        durable=store,
        ttl_s=ttl_s,
        wall_clock=clock or WallClock(),
    )


RESULT = AnalysisResult(
    kind="resume",
    score=75,
    matching_skills=["react", "node", "sql"],
    missing_skills=["aws"],
    suggestions=["Add AWS projects"],
)
FP = compute_fingerprint("resume", resume="r", job="j")


class TestTieredPromotion:

    @pytest.mark.asyncio
    async def test_promoted_into_fresh_instance(self, durable_settings):
        store = create_cache_store(durable_settings)
        try:
            await _tiered(store).set(FP, RESULT)
        finally:
            store.close()

        reopened = create_cache_store(durable_settings)
        try:
            cache = _tiered(reopened)
            assert len(cache.memory) == 0
            assert await cache.get(FP) == RESULT
            assert cache.memory.get(FP) == RESULT
        finally:
            reopened.close()

    @pytest.mark.asyncio
    async def test_expired_durable_entry_dropped(self, durable_settings):
        clock = WallClock()
        store = create_cache_store(durable_settings)
        try:
            await _tiered(store, clock=clock).set(FP, RESULT)
            clock.now += 1801
            assert await _tiered(store, clock=clock).get(FP) is None
            assert await store.keys("resume_analysis_") == []
        finally:
            store.close()

    @pytest.mark.asyncio
    async def test_invalid_durable_entry_dropped(self, durable_settings):
        store = create_cache_store(durable_settings)
        try:
            await _tiered(store).set(FP, RESULT)
            # Same key, read back with a schema that no longer fits.
            stale = TieredCache(
                "resume_analysis",
                create_model("Strict", __base__=AnalysisResult, extra_field=(int, ...)),
                KeyValueCache(max_size=10),
                durable=store,
                wall_clock=WallClock(),
            )
            assert await stale.get(FP) is None
            assert await store.keys("resume_analysis_") == []
        finally:
            store.close()


class TestNamespaces:

    @pytest.mark.asyncio
    async def test_clear_scoped_to_namespace(self, durable_settings):
        store = create_cache_store(durable_settings)
        try:
            resumes = _tiered(store, "resume_analysis")
            profiles = _tiered(store, "linkedin_analysis")
            await resumes.set(FP, RESULT)
            await profiles.set(FP, RESULT.model_copy(update={"kind": "linkedin"}))

            assert await resumes.clear() == 1
            assert await resumes.get(FP) is None
            assert (await profiles.get(FP)).kind == "linkedin"
        finally:
            store.close()

    @pytest.mark.asyncio
    async def test_delete_removes_both_tiers(self, durable_settings):
        store = create_cache_store(durable_settings)
        try:
            cache = _tiered(store)
            await cache.set(FP, RESULT)
            await cache.delete(FP)
            assert cache.memory.get(FP) is None
            assert await _tiered(store).get(FP) is None
        finally:
            store.close()
