# src/api/facade.py — v2
"""Public API facade — single entry point for resume and profile analysis.

Usage:
    from careerlens.api.facade import CareerLens
    async with CareerLens() as lens:
        result = await lens.analyze_resume(resume_text, job_description)

CareerLens is the composition root: it builds every collaborator once
from Settings (HTTP client, AI clients, caches, worker, stores) and wires
them into the AnalysisOrchestrator. Collaborators can be injected for
tests.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from careerlens.cache.cache_factory import create_cache_store
from careerlens.cache.memory_cache import KeyValueCache
from careerlens.cache.tiered_cache import TieredCache
from careerlens.config.settings import Settings, load_settings
from careerlens.core.cancellation import CancellationToken
from careerlens.core.models import AnalysisResult, StatusListener
from careerlens.llm.client_factory import create_llm_client
from careerlens.llm.config import resolve_llm
from careerlens.llm.http_client import ExternalCallClient
from careerlens.llm.retry import RetryPolicy
from careerlens.llm.scoring_client import AIScoringClient
from careerlens.pipeline.background import BackgroundTasks
from careerlens.pipeline.orchestrator import AnalysisOrchestrator
from careerlens.profile.fetcher import PROFILE_NAMESPACE, ProfileFetchClient
from careerlens.profile.models import FetchedProfile
from careerlens.storage.persistence_chain import PersistenceFallbackChain
from careerlens.storage.store_factory import create_analysis_store
from careerlens.tracking.performance_monitor import PerformanceMonitor
from careerlens.worker.channel import WorkerChannel

if TYPE_CHECKING:
    from careerlens.cache.base_cache_store import BaseCacheStore
    from careerlens.llm.base_client import BaseLLMClient
    from careerlens.storage.base_analysis_store import BaseAnalysisStore

logger = logging.getLogger(__name__)

RESUME_NAMESPACE = "resume_analysis"
LINKEDIN_NAMESPACE = "linkedin_analysis"

_UNSET = object()


class CareerLens:
    """Wired analysis service.

    Args:
        settings: Global settings. Loaded from .env if None.
        transport: httpx transport for every external call (tests use
            httpx.MockTransport).
        cache_store: Durable cache tier. Built from settings when omitted;
            pass None for memory only.
        analysis_store: Durable analysis store. Built from settings when
            omitted; pass None to keep results in memory only.
        resume_llm: AI client for resume scoring (resolved from settings
            when omitted).
        profile_llm: AI client for profile review (idem).
        worker: Extraction worker channel (idem).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        cache_store: BaseCacheStore | None | object = _UNSET,
        analysis_store: BaseAnalysisStore | None | object = _UNSET,
        resume_llm: BaseLLMClient | None = None,
        profile_llm: BaseLLMClient | None = None,
        worker: WorkerChannel | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        s = self.settings

        self.monitor = PerformanceMonitor(
            max_samples=s.perf_max_samples, stale_after_s=s.perf_stale_after_s
        )
        self.http = ExternalCallClient(
            RetryPolicy.from_settings(s), transport=transport, monitor=self.monitor
        )
        self.cache_store: BaseCacheStore | None = (
            create_cache_store(s) if cache_store is _UNSET else cache_store  # type: ignore[assignment]
        )
        self.analysis_store: BaseAnalysisStore | None = (
            create_analysis_store(s) if analysis_store is _UNSET else analysis_store  # type: ignore[assignment]
        )
        self.worker = worker or WorkerChannel(
            mode=s.worker_mode, max_workers=s.worker_max_workers, monitor=self.monitor
        )
        self.background = BackgroundTasks()

        resume_llm = resume_llm or self._build_llm("resume_scorer", s.resume_ai_timeout_s)
        profile_llm = profile_llm or self._build_llm("profile_reviewer", s.profile_ai_timeout_s)
        self.scoring = AIScoringClient(
            resume_llm,
            profile_llm,
            resume_max_tokens=s.resume_ai_max_tokens,
            resume_timeout_s=s.resume_ai_timeout_s,
            profile_max_tokens=s.profile_ai_max_tokens,
            profile_timeout_s=s.profile_ai_timeout_s,
            memo_max_size=s.memo_max_size,
            memo_ttl_s=s.memo_ttl_s,
        )
        self.profiles = ProfileFetchClient(
            self.http,
            self._tiered(PROFILE_NAMESPACE, FetchedProfile, s.profile_cache_ttl_s),
            api_key=s.rapidapi_key,
            api_url=s.profile_api_url,
            api_host=s.profile_api_host,
            fields=s.profile_fields_list,
            timeout_s=s.profile_fetch_timeout_s,
        )
        self.persistence = PersistenceFallbackChain(
            self.analysis_store,
            self.background,
            procedure_name=s.store_procedure_name,
            memory_max_size=s.memory_fallback_max_size,
        )
        self.orchestrator = AnalysisOrchestrator(
            worker=self.worker,
            scoring=self.scoring,
            profiles=self.profiles,
            resume_cache=self._tiered(RESUME_NAMESPACE, AnalysisResult, s.resume_cache_ttl_s),
            profile_cache=self._tiered(
                LINKEDIN_NAMESPACE, AnalysisResult, s.linkedin_analysis_cache_ttl_s
            ),
            persistence=self.persistence,
            background=self.background,
            monitor=self.monitor,
            profile_timeout_s=s.profile_analysis_timeout_s,
        )
        logger.debug(
            "CareerLens ready: cache=%s store=%s worker=%s",
            type(self.cache_store).__name__ if self.cache_store else None,
            type(self.analysis_store).__name__ if self.analysis_store else None,
            s.worker_mode,
        )

    def _build_llm(self, component: str, timeout_s: float) -> BaseLLMClient:
        assignment = resolve_llm(component, self.settings)
        logger.debug("%s -> %s (%s)", component, assignment.key, assignment.source)
        return create_llm_client(
            assignment.provider,
            assignment.model,
            self.settings,
            http=self.http,
            timeout_s=timeout_s,
        )

    def _tiered(self, namespace: str, model: type, ttl_s: float) -> TieredCache:
        memory: KeyValueCache = KeyValueCache(
            max_size=self.settings.memory_cache_max_size, ttl_s=ttl_s
        )
        return TieredCache(namespace, model, memory, durable=self.cache_store, ttl_s=ttl_s)

    # --- Operations ---

    async def analyze_resume(
        self,
        resume_text: str,
        job_description: str,
        token: CancellationToken | None = None,
        owner_id: str | None = None,
        on_status: StatusListener | None = None,
    ) -> AnalysisResult:
        return await self.orchestrator.analyze_resume(
            resume_text, job_description, token=token, owner_id=owner_id, on_status=on_status
        )

    async def analyze_linkedin_profile(
        self,
        profile_url: str,
        token: CancellationToken | None = None,
        owner_id: str | None = None,
        on_status: StatusListener | None = None,
        force_refresh: bool = False,
    ) -> AnalysisResult:
        return await self.orchestrator.analyze_linkedin_profile(
            profile_url,
            token=token,
            owner_id=owner_id,
            on_status=on_status,
            force_refresh=force_refresh,
        )

    async def invalidate_profile(self, profile_url: str) -> None:
        await self.orchestrator.invalidate_profile(profile_url)

    async def clear_caches(self) -> dict[str, int]:
        return await self.orchestrator.clear_caches()

    # --- Lifecycle ---

    async def aclose(self, drain_timeout_s: float | None = 10.0) -> None:
        """Finish background persistence, then release every resource."""
        still_pending = await self.background.drain(timeout_s=drain_timeout_s)
        if still_pending:
            logger.warning("Cancelling %d unfinished background tasks", still_pending)
            await self.background.cancel_all()
        self.orchestrator.pending.cancel_all()
        await self.scoring.aclose()
        await self.http.aclose()
        self.worker.shutdown(wait=False)
        if self.cache_store is not None:
            self.cache_store.close()
        if self.analysis_store is not None:
            self.analysis_store.close()

    async def __aenter__(self) -> CareerLens:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
