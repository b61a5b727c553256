# src/profile/fetcher.py — v1
"""ProfileFetchClient: fetch, validate and cache LinkedIn profile documents.

Fetched documents are cached for 30 days in their own tiered cache
namespace (``linkedin_profile``), independent of analysis results, so a
re-analysis of the same profile skips the data-fetch call.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import ValidationError

from careerlens.cache.fingerprint import compute_fingerprint
from careerlens.cache.tiered_cache import TieredCache
from careerlens.core.cancellation import CancellationToken
from careerlens.core.errors import (
    ConfigurationError,
    InputValidationError,
    ServiceResponseError,
)
from careerlens.llm.http_client import ExternalCallClient, ExternalRequest
from careerlens.profile.models import (
    ExperienceDate,
    FetchedProfile,
    LinkedInProfileDocument,
    PartiallyExtracted,
    ProfileExperience,
    ProfileExtraction,
    ValidatedProfile,
)

logger = logging.getLogger(__name__)

PROFILE_NAMESPACE = "linkedin_profile"
PROFILE_SERVICE = "LinkedIn profile"

_PROFILE_URL_RE = re.compile(r"linkedin\.com/in/([^/?#]+)", re.IGNORECASE)

INVALID_URL_MESSAGE = (
    "Invalid LinkedIn profile URL format. Please provide a valid profile URL "
    "(e.g., https://www.linkedin.com/in/username)"
)
NOT_FOUND_MESSAGE = "LinkedIn profile not found. Please check the URL and try again."
PARTIAL_WARNING = (
    "Profile data did not match the expected format; only core fields were used."
)

# Lightweight extraction limits
SUMMARY_LIMIT = 500
EXPERIENCE_LIMIT = 3
EXPERIENCE_DESCRIPTION_LIMIT = 200
SKILL_LIMIT = 10

# Analysis prompt limits
PROMPT_SUMMARY_LIMIT = 200
PROMPT_DESCRIPTION_LIMIT = 150
PROMPT_SKILL_LIMIT = 8
INSUFFICIENT_DATA_PROMPT = "Insufficient profile data available"


def validate_profile_url(profile_url: str) -> str:
    """Return the stripped URL if it points at a ``linkedin.com/in/<id>`` profile.

    Raises:
        InputValidationError: Not a profile URL.
    """
    url = profile_url.strip() if isinstance(profile_url, str) else ""
    if not _PROFILE_URL_RE.search(url):
        raise InputValidationError(INVALID_URL_MESSAGE)
    return url


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _year_only(value: Any) -> ExperienceDate | None:
    if isinstance(value, dict) and isinstance(value.get("year"), int) and value["year"]:
        return ExperienceDate(year=value["year"])
    return None


def lightweight_extract(raw: Any) -> LinkedInProfileDocument:
    """Keep only the fields the analysis needs, tolerating any shape."""
    data = raw if isinstance(raw, dict) else {}

    experiences: list[ProfileExperience] = []
    raw_experiences = data.get("experiences")
    if isinstance(raw_experiences, list):
        for exp in raw_experiences[:EXPERIENCE_LIMIT]:
            exp = exp if isinstance(exp, dict) else {}
            description = _text(exp.get("description"))
            if len(description) > EXPERIENCE_DESCRIPTION_LIMIT:
                description = description[:EXPERIENCE_DESCRIPTION_LIMIT] + "..."
            experiences.append(ProfileExperience(
                company=_text(exp.get("company")),
                title=_text(exp.get("title")),
                description=description,
                starts_at=_year_only(exp.get("starts_at")),
                ends_at=_year_only(exp.get("ends_at")),
            ))

    skills: list[str] = []
    raw_skills = data.get("skills")
    if isinstance(raw_skills, list):
        for skill in raw_skills[:SKILL_LIMIT]:
            skills.append(
                skill if isinstance(skill, str)
                else _text(skill.get("name")) if isinstance(skill, dict)
                else ""
            )

    return LinkedInProfileDocument(
        full_name=_text(data.get("full_name")),
        headline=_text(data.get("headline")),
        summary=_text(data.get("summary"))[:SUMMARY_LIMIT],
        experiences=experiences,
        skills=skills,
    )


def extract_profile(raw: Any) -> ProfileExtraction:
    """Validate ``raw`` against the document schema, else reduce it."""
    try:
        return ValidatedProfile(profile=LinkedInProfileDocument.model_validate(raw))
    except ValidationError as e:
        logger.info(
            "Profile schema validation failed (%d errors), using lightweight extraction",
            e.error_count(),
        )
    return PartiallyExtracted(
        profile=lightweight_extract(raw), warnings=[PARTIAL_WARNING]
    )


def build_analysis_prompt(profile: LinkedInProfileDocument) -> str:
    """Compact profile digest for the AI reviewer, built without the worker."""
    sections: list[str] = []

    header = " | ".join(p for p in (profile.full_name, profile.headline) if p)
    if header:
        sections.append(f"PROFILE: {header}")

    if profile.summary:
        summary = profile.summary
        if len(summary) > PROMPT_SUMMARY_LIMIT:
            summary = summary[:PROMPT_SUMMARY_LIMIT] + "..."
        sections.append(f"SUMMARY: {summary}")

    if profile.experiences:
        lines = []
        for exp in profile.experiences[:EXPERIENCE_LIMIT]:
            duration = ""
            if exp.starts_at is not None:
                end = exp.ends_at.year if exp.ends_at is not None else None
                duration = f"{exp.starts_at.year}-{end}" if end else f"{exp.starts_at.year}-Present"
            highlights = ""
            if exp.description:
                cut = exp.description[:PROMPT_DESCRIPTION_LIMIT]
                if len(exp.description) > PROMPT_DESCRIPTION_LIMIT:
                    cut += "..."
                highlights = f" Highlights: {cut}"
            lines.append(f"- {exp.title} at {exp.company} ({duration}){highlights}")
        sections.append("EXPERIENCE:\n" + "\n".join(lines))

    skills = profile.skill_names[:PROMPT_SKILL_LIMIT]
    if skills:
        sections.append(f"SKILLS: {', '.join(skills)}")

    return "\n\n".join(sections) or INSUFFICIENT_DATA_PROMPT


class ProfileFetchClient:
    """Client of the profile data-fetch endpoint.

    Args:
        http: Shared retrying HTTP client.
        cache: Tiered cache of FetchedProfile envelopes.
        api_key: Endpoint API key (``x-rapidapi-key``).
        api_url: Endpoint URL.
        api_host: Endpoint host header (``x-rapidapi-host``).
        fields: Profile fields requested.
        timeout_s: Per-attempt timeout.
    """

    def __init__(
        self,
        http: ExternalCallClient,
        cache: TieredCache[FetchedProfile],
        *,
        api_key: str,
        api_url: str,
        api_host: str,
        fields: list[str] | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        self._http = http
        self._cache = cache
        self._api_key = api_key
        self._api_url = api_url
        self._api_host = api_host
        self._fields = fields or ["full_name", "headline", "summary", "experiences", "skills"]
        self._timeout_s = timeout_s

    @property
    def cache(self) -> TieredCache[FetchedProfile]:
        return self._cache

    @staticmethod
    def fingerprint(profile_url: str) -> str:
        return compute_fingerprint(PROFILE_NAMESPACE, url=profile_url)

    async def fetch(
        self,
        profile_url: str,
        token: CancellationToken | None = None,
        force_refresh: bool = False,
    ) -> ProfileExtraction:
        """Return the profile document, from cache unless ``force_refresh``.

        Raises:
            InputValidationError: Invalid URL or unknown profile.
            ConfigurationError: No API key configured.
            TransientServiceError: Endpoint unavailable after retries.
            ServiceResponseError: Endpoint answered with an error or no data.
            AnalysisCancelledError: ``token`` aborted.
        """
        url = validate_profile_url(profile_url)
        if not self._api_key:
            raise ConfigurationError("RAPIDAPI_KEY is required for profile analysis")

        fp = self.fingerprint(url)
        if not force_refresh:
            cached = await self._cache.get(fp)
            if cached is not None:
                logger.debug("Using cached profile for %s", url)
                return cached.extraction

        request = ExternalRequest(
            method="GET",
            url=self._api_url,
            service=PROFILE_SERVICE,
            timeout_s=self._timeout_s,
            headers={
                "x-rapidapi-key": self._api_key,
                "x-rapidapi-host": self._api_host,
                "Cache-Control": "no-cache",
            },
            params={"url": url, "fields": ",".join(self._fields)},
        )
        try:
            payload = await self._http.call(request, token)
        except ServiceResponseError as e:
            if e.status_code == 404:
                raise InputValidationError(NOT_FOUND_MESSAGE) from e
            raise

        if not payload:
            raise ServiceResponseError(
                "LinkedIn profile service returned empty data", service=PROFILE_SERVICE
            )

        extraction = extract_profile(payload)
        await self._cache.set(fp, FetchedProfile(profile_url=url, extraction=extraction))
        logger.info("Fetched profile %s (%s)", url, extraction.kind)
        return extraction

    async def invalidate(self, profile_url: str) -> None:
        """Drop the cached document for ``profile_url``."""
        await self._cache.delete(self.fingerprint(validate_profile_url(profile_url)))
