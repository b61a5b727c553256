# src/pipeline/orchestrator.py — v3
"""Analysis orchestrator — resume and LinkedIn profile workflows.

Per call:
  CACHE_CHECK      memory tier, then durable tier (hit -> done)
  DEDUPE_CHECK     identical fingerprint in flight -> join it
  COMPUTE          worker extraction and AI scoring run concurrently
  ASSEMBLE         frozen AnalysisResult, written to both cache tiers
  PERSIST          fallback chain, as a supervised background task

Worker failures degrade the result; external-service exhaustion is fatal;
persistence failures never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import ValidationError

from careerlens.cache.fingerprint import compute_fingerprint
from careerlens.core.cancellation import CancellationToken
from careerlens.core.errors import (
    AnalysisCancelledError,
    CareerLensError,
    InputValidationError,
    TransientServiceError,
    WorkerError,
)
from careerlens.core.models import (
    AnalysisResult,
    AnalysisStatus,
    ProfileSuggestion,
    ResumeAnalysisRequest,
    StatusListener,
)
from careerlens.extraction.skills import (
    calculate_match_score,
    match_skills,
    round_half_up,
)
from careerlens.llm.scoring_client import suggestions_from_text
from careerlens.logging.context import set_request_context, set_stage_context
from careerlens.pipeline.background import BackgroundTasks
from careerlens.pipeline.dedup import PendingRequestTable
from careerlens.profile.fetcher import build_analysis_prompt, validate_profile_url
from careerlens.profile.models import PartiallyExtracted
from careerlens.storage.persistence_chain import build_record

if TYPE_CHECKING:
    from careerlens.cache.tiered_cache import TieredCache
    from careerlens.llm.scoring_client import AIScoringClient
    from careerlens.profile.fetcher import ProfileFetchClient
    from careerlens.storage.persistence_chain import PersistenceFallbackChain
    from careerlens.tracking.performance_monitor import PerformanceMonitor
    from careerlens.worker.channel import WorkerChannel

logger = logging.getLogger(__name__)

RESUME_OPERATION = "resume"
LINKEDIN_OPERATION = "linkedin"
LINKEDIN_SERVICE = "LinkedIn analysis"

MISSING_INPUT_MESSAGE = "Both resume text and job description are required."
INSUFFICIENT_DATA_MESSAGE = (
    "Insufficient profile data for analysis. Please try a different profile "
    "or check the URL."
)
PROFILE_TIMEOUT_MESSAGE = (
    "The LinkedIn profile analysis timed out. This could be due to high demand "
    "or network issues. Please try again in a few moments."
)
SKILLS_UNAVAILABLE_WARNING = (
    "Skill extraction was unavailable; the match score could not be computed."
)
PROFILE_PARSE_WARNING = (
    "Profile processing was unavailable; the score is based on the AI review only."
)
MAX_PROFILE_SUGGESTIONS = 10


class _StatusListeners:
    """Status listeners of every caller waiting on a fingerprint."""

    def __init__(self) -> None:
        self._by_key: dict[str, list[StatusListener]] = {}

    def add(self, key: str, listener: StatusListener | None) -> Callable[[], None]:
        if listener is None:
            return lambda: None
        self._by_key.setdefault(key, []).append(listener)

        def remove() -> None:
            listeners = self._by_key.get(key, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._by_key.pop(key, None)

        return remove

    def broadcast(self, key: str, status: AnalysisStatus, message: str) -> None:
        for listener in list(self._by_key.get(key, [])):
            _notify(listener, status, message)


def _notify(listener: StatusListener | None, status: AnalysisStatus, message: str) -> None:
    logger.debug("Analysis status: %s - %s", status, message)
    if listener is None:
        return
    try:
        listener(status, message)
    except Exception:
        logger.exception("Status listener failed")


class AnalysisOrchestrator:
    """Coordinates caches, deduplication, worker, AI scoring and persistence.

    Args:
        worker: CPU-bound extraction channel.
        scoring: AI scoring client.
        profiles: Profile data-fetch client.
        resume_cache: Cache of resume analysis results.
        profile_cache: Cache of LinkedIn analysis results.
        persistence: Fallback chain; None disables persistence.
        background: Supervisor of persistence tasks.
        monitor: Optional latency monitor (``analysis.<kind>`` keys).
        profile_timeout_s: Bound on one whole profile computation.
    """

    def __init__(
        self,
        *,
        worker: WorkerChannel,
        scoring: AIScoringClient,
        profiles: ProfileFetchClient,
        resume_cache: TieredCache[AnalysisResult],
        profile_cache: TieredCache[AnalysisResult],
        persistence: PersistenceFallbackChain | None = None,
        background: BackgroundTasks | None = None,
        monitor: PerformanceMonitor | None = None,
        profile_timeout_s: float = 45.0,
    ) -> None:
        self._worker = worker
        self._scoring = scoring
        self._profiles = profiles
        self._resume_cache = resume_cache
        self._profile_cache = profile_cache
        self._persistence = persistence
        self._background = background or BackgroundTasks()
        self._monitor = monitor
        self._profile_timeout_s = profile_timeout_s
        self._pending: PendingRequestTable[AnalysisResult] = PendingRequestTable()
        self._listeners = _StatusListeners()

    @property
    def pending(self) -> PendingRequestTable[AnalysisResult]:
        return self._pending

    @property
    def background(self) -> BackgroundTasks:
        return self._background

    # ------------------------------------------------------------------
    # Resume
    # ------------------------------------------------------------------

    async def analyze_resume(
        self,
        resume_text: str,
        job_description: str,
        token: CancellationToken | None = None,
        owner_id: str | None = None,
        on_status: StatusListener | None = None,
    ) -> AnalysisResult:
        """Score a resume against a job description.

        Raises:
            InputValidationError: Empty resume or job description.
            TransientServiceError: AI scoring unavailable after retries.
            ServiceResponseError: AI scoring answered with an error.
            AnalysisCancelledError: ``token`` aborted.
        """
        try:
            request = ResumeAnalysisRequest(
                resume_text=resume_text, job_description=job_description
            )
        except ValidationError as e:
            raise InputValidationError(MISSING_INPUT_MESSAGE) from e

        fp = compute_fingerprint(
            RESUME_OPERATION,
            resume=request.resume_text,
            job=request.job_description,
        )
        return await self._run(
            RESUME_OPERATION,
            fp,
            self._resume_cache,
            lambda internal: self._compute_resume(request, internal),
            token=token,
            owner_id=owner_id,
            subject_id=fp,
            on_status=on_status,
        )

    async def _compute_resume(
        self, request: ResumeAnalysisRequest, token: CancellationToken
    ) -> AnalysisResult:
        set_stage_context("fetch_and_extract")
        outcomes = await asyncio.gather(
            self._extract_skill_sets(request, token),
            self._scoring.score_resume(
                request.resume_text, request.job_description, token=token
            ),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        skill_sets, analysis_text = outcomes

        set_stage_context("assemble")
        warnings: list[str] = []
        if skill_sets is None:
            matching, missing, score = [], [], 0
            warnings.append(SKILLS_UNAVAILABLE_WARNING)
        else:
            matching, missing = match_skills(*skill_sets)
            score = calculate_match_score(*skill_sets)

        return AnalysisResult(
            kind="resume",
            score=score,
            matching_skills=matching,
            missing_skills=missing,
            suggestions=suggestions_from_text(analysis_text),
            raw_model_text=analysis_text,
            confidence="reduced" if warnings else "full",
            warnings=warnings,
        )

    async def _extract_skill_sets(
        self, request: ResumeAnalysisRequest, token: CancellationToken
    ) -> tuple[list[str], list[str]] | None:
        """Resume and job skills, or None when the worker failed."""
        try:
            resume_skills = await self._worker.extract_skills(request.resume_text, token=token)
            job_skills = await self._worker.extract_skills(request.job_description, token=token)
        except WorkerError as e:
            logger.warning("Skill extraction failed (%s): %s", e.code, e)
            return None
        return resume_skills, job_skills

    # ------------------------------------------------------------------
    # LinkedIn profile
    # ------------------------------------------------------------------

    async def analyze_linkedin_profile(
        self,
        profile_url: str,
        token: CancellationToken | None = None,
        owner_id: str | None = None,
        on_status: StatusListener | None = None,
        force_refresh: bool = False,
    ) -> AnalysisResult:
        """Fetch, parse and AI-review a LinkedIn profile.

        Raises:
            InputValidationError: Invalid URL, unknown profile or not
                enough profile data.
            ConfigurationError: Profile endpoint key missing.
            TransientServiceError: An endpoint was unavailable after
                retries, or the whole analysis exceeded its time bound.
            AnalysisCancelledError: ``token`` aborted.
        """
        url = validate_profile_url(profile_url)
        fp = compute_fingerprint(LINKEDIN_OPERATION, url=url)
        return await self._run(
            LINKEDIN_OPERATION,
            fp,
            self._profile_cache,
            lambda internal: self._compute_profile_bounded(url, fp, internal, force_refresh),
            token=token,
            owner_id=owner_id,
            subject_id=url,
            on_status=on_status,
            force_refresh=force_refresh,
            details={"profile_url": url},
        )

    async def _compute_profile_bounded(
        self,
        url: str,
        fp: str,
        token: CancellationToken,
        force_refresh: bool,
    ) -> AnalysisResult:
        try:
            return await asyncio.wait_for(
                self._compute_profile(url, fp, token, force_refresh),
                self._profile_timeout_s,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                "Profile analysis of %s exceeded %.0fs", url, self._profile_timeout_s
            )
            raise TransientServiceError(
                PROFILE_TIMEOUT_MESSAGE, service=LINKEDIN_SERVICE, error_type="timeout"
            ) from e

    async def _compute_profile(
        self,
        url: str,
        fp: str,
        token: CancellationToken,
        force_refresh: bool,
    ) -> AnalysisResult:
        set_stage_context("fetch")
        self._listeners.broadcast(fp, "fetching", "Fetching LinkedIn profile data...")
        extraction = await self._profiles.fetch(url, token, force_refresh=force_refresh)
        document = extraction.profile
        warnings: list[str] = (
            list(extraction.warnings) if isinstance(extraction, PartiallyExtracted) else []
        )

        set_stage_context("extract")
        initial_score: int | None = None
        initial_suggestions: list[ProfileSuggestion] = []
        try:
            profile = await self._worker.parse_profile_data(
                document.model_dump(mode="json", exclude_none=True), token=token
            )
            initial_suggestions = await self._worker.generate_initial_suggestions(
                profile, token=token
            )
        except WorkerError as e:
            logger.warning("Profile processing failed (%s): %s", e.code, e)
            if not document.has_usable_data:
                raise InputValidationError(INSUFFICIENT_DATA_MESSAGE) from e
            prompt = build_analysis_prompt(document)
            warnings.append(PROFILE_PARSE_WARNING)
        else:
            if not profile.has_sufficient_data:
                raise InputValidationError(INSUFFICIENT_DATA_MESSAGE)
            prompt = profile.profile_summary
            initial_score = profile.initial_score

        set_stage_context("ai_score")
        self._listeners.broadcast(fp, "analyzing", "Analyzing profile content...")
        review = await self._scoring.review_profile(prompt, token)

        set_stage_context("assemble")
        if initial_score is None:
            score = review.score
        else:
            score = min(round_half_up((initial_score + review.score) / 2), 100)
        suggestions = [*initial_suggestions, *review.suggestions][:MAX_PROFILE_SUGGESTIONS]
        return AnalysisResult(
            kind="linkedin",
            score=score,
            suggestions=suggestions,
            strengths=review.strengths,
            weaknesses=review.weaknesses,
            raw_model_text=review.raw_text,
            confidence="reduced" if initial_score is None else "full",
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Shared state machine
    # ------------------------------------------------------------------

    async def _run(
        self,
        operation: str,
        fp: str,
        cache: TieredCache[AnalysisResult],
        factory: Callable[[CancellationToken], Awaitable[AnalysisResult]],
        *,
        token: CancellationToken | None,
        owner_id: str | None,
        subject_id: str,
        on_status: StatusListener | None,
        force_refresh: bool = False,
        details: dict[str, Any] | None = None,
    ) -> AnalysisResult:
        set_request_context(uuid.uuid4().hex[:12], operation, fp)
        set_stage_context("cache_check")
        stop = self._monitor.start_measurement(f"analysis.{operation}") if self._monitor else None
        _notify(on_status, "started", f"Starting {operation} analysis...")
        pending_key = f"{fp}:refresh" if force_refresh else fp
        remove_listener = self._listeners.add(pending_key, on_status)

        try:
            if token is not None:
                token.raise_if_aborted()

            result = None if force_refresh else await cache.get(fp)
            if result is not None:
                logger.info("Cache hit for %s analysis", operation)
            else:
                set_stage_context("dedupe_check")
                shared = await self._pending.run(
                    pending_key,
                    lambda internal: self._compute_and_cache(cache, fp, factory, internal),
                    token,
                )
                # Joined callers share one computation, not one object.
                result = shared.model_copy(deep=True)
        except AnalysisCancelledError as e:
            logger.info("%s analysis cancelled: %s", operation.capitalize(), e)
            _notify(on_status, "error", str(e))
            raise
        except CareerLensError as e:
            logger.error("%s analysis failed: %s", operation.capitalize(), e)
            _notify(on_status, "error", str(e))
            raise
        except Exception as e:
            logger.exception("%s analysis failed unexpectedly", operation.capitalize())
            _notify(on_status, "error", str(e) or "An unexpected error occurred")
            raise
        finally:
            remove_listener()
            set_stage_context(None)
            if stop is not None:
                stop()

        self._schedule_persist(result, owner_id, subject_id, details)
        _notify(on_status, "complete", "Analysis complete!")
        return result

    async def _compute_and_cache(
        self,
        cache: TieredCache[AnalysisResult],
        fp: str,
        factory: Callable[[CancellationToken], Awaitable[AnalysisResult]],
        token: CancellationToken,
    ) -> AnalysisResult:
        result = await factory(token)
        await cache.set(fp, result)
        logger.info(
            "%s analysis complete: score=%d confidence=%s",
            result.kind, result.score, result.confidence,
        )
        return result

    def _schedule_persist(
        self,
        result: AnalysisResult,
        owner_id: str | None,
        subject_id: str,
        details: dict[str, Any] | None,
    ) -> None:
        if self._persistence is None or owner_id is None:
            return
        record = build_record(result, owner_id, subject_id, details)
        self._background.spawn(
            self._persistence.save(record),
            name=f"persist-{result.kind}-{subject_id[:24]}",
        )

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    async def invalidate_profile(self, profile_url: str) -> None:
        """Forget the cached analysis and document of one profile."""
        url = validate_profile_url(profile_url)
        await self._profile_cache.delete(compute_fingerprint(LINKEDIN_OPERATION, url=url))
        await self._profiles.invalidate(url)
        logger.info("Invalidated cached profile %s", url)

    async def clear_caches(self) -> dict[str, int]:
        """Drop every cached result. Returns durable entries removed per cache."""
        removed = {
            self._resume_cache.namespace: await self._resume_cache.clear(),
            self._profile_cache.namespace: await self._profile_cache.clear(),
            self._profiles.cache.namespace: await self._profiles.cache.clear(),
        }
        self._scoring.score_resume.cache_clear()
        logger.info("Caches cleared: %s", removed)
        return removed
