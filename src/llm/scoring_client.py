# src/llm/scoring_client.py — v1
"""AIScoringClient: resume scoring and profile review over BaseLLMClient.

Resume scoring returns the raw model text (five bullet points), memoized
per (resume, job description). Profile review returns a parsed
ProfileReview with classified suggestions.
"""

from __future__ import annotations

import logging
import re

from careerlens.cache.memoize import memoize
from careerlens.core.cancellation import CancellationToken
from careerlens.core.errors import ServiceResponseError
from careerlens.core.models import ProfileReview, ProfileSuggestion
from careerlens.llm.base_client import BaseLLMClient
from careerlens.llm.prompts import (
    RESUME_SYSTEM_PROMPT,
    build_profile_review_messages,
    build_resume_messages,
)

logger = logging.getLogger(__name__)

MAX_RESUME_SUGGESTIONS = 5
MAX_REVIEW_ITEMS = 3
DEFAULT_REVIEW_SCORE = 50

_SCORE_RE = re.compile(r"(?:score|rating)(?:\s*\([^)]*\))?:\s*(\d+)", re.IGNORECASE)
_STRENGTHS_RE = re.compile(r"strengths?:?\s*(.+?)(?=weaknesses?:|\n\n|$)", re.IGNORECASE | re.DOTALL)
_WEAKNESSES_RE = re.compile(r"weaknesses?:?\s*(.+?)(?=suggestions?:|\n\n|$)", re.IGNORECASE | re.DOTALL)
_SUGGESTIONS_RE = re.compile(r"suggestions?:?\s*(.+?)(?=\n\n|$)", re.IGNORECASE | re.DOTALL)
_BULLET_RE = re.compile(r"^[-•*]\s*")
_RESUME_BULLET_RE = re.compile(r"^[•\-]\s*")

_EXPERIENCE_RE = re.compile(r"experience|work|job|role|position|company|project|achievement", re.IGNORECASE)
_NETWORK_RE = re.compile(r"network|connect|endorsement", re.IGNORECASE)
_HIGH_RE = re.compile(r"critical|important|essential|crucial|necessary|must|should", re.IGNORECASE)
_LOW_RE = re.compile(r"consider|may|might|could|try", re.IGNORECASE)

DEFAULT_STRENGTHS = ["Has professional experience"]
DEFAULT_WEAKNESSES = ["Limited quantifiable achievements"]
DEFAULT_SUGGESTION = ProfileSuggestion(
    section="experience",
    text="Add specific achievements with metrics to your experience.",
    priority="high",
)


def suggestions_from_text(text: str) -> list[str]:
    """First five non-empty lines of the resume scorer output, bullets stripped."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return [_RESUME_BULLET_RE.sub("", line) for line in lines][:MAX_RESUME_SUGGESTIONS]


def _bullet_items(match: re.Match[str] | None) -> list[str]:
    if match is None:
        return []
    items = [
        line.strip() for line in match.group(1).split("\n")
        if len(line.strip()) > 5 and _BULLET_RE.match(line.strip())
    ]
    return [_BULLET_RE.sub("", item).strip() for item in items[:MAX_REVIEW_ITEMS]]


def classify_suggestion(text: str) -> ProfileSuggestion:
    if _EXPERIENCE_RE.search(text):
        section = "experience"
    elif _NETWORK_RE.search(text):
        section = "network"
    else:
        section = "profile"

    if _HIGH_RE.search(text):
        priority = "high"
    elif _LOW_RE.search(text):
        priority = "low"
    else:
        priority = "medium"
    return ProfileSuggestion(section=section, text=text, priority=priority)


def parse_profile_review(content: str) -> ProfileReview:
    """Parse the reviewer's free-text answer. Missing sections get defaults."""
    score_match = _SCORE_RE.search(content)
    score = (
        min(100, max(0, int(score_match.group(1))))
        if score_match else DEFAULT_REVIEW_SCORE
    )

    strengths = _bullet_items(_STRENGTHS_RE.search(content))
    weaknesses = _bullet_items(_WEAKNESSES_RE.search(content))
    suggestions = [
        classify_suggestion(text)
        for text in _bullet_items(_SUGGESTIONS_RE.search(content))
    ]

    return ProfileReview(
        score=score,
        strengths=strengths or list(DEFAULT_STRENGTHS),
        weaknesses=weaknesses or list(DEFAULT_WEAKNESSES),
        suggestions=suggestions or [DEFAULT_SUGGESTION],
        raw_text=content,
    )


class AIScoringClient:
    """High-level AI operations used by the orchestrator.

    Args:
        resume_llm: Client used for resume scoring.
        profile_llm: Client used for profile review (defaults to resume_llm).
        memo_max_size: Capacity of the resume-scoring memo.
        memo_ttl_s: Lifetime of memoized resume scores.
    """

    def __init__(
        self,
        resume_llm: BaseLLMClient,
        profile_llm: BaseLLMClient | None = None,
        *,
        resume_max_tokens: int = 250,
        resume_timeout_s: float = 30.0,
        profile_max_tokens: int = 300,
        profile_timeout_s: float = 25.0,
        memo_max_size: int = 100,
        memo_ttl_s: float = 60 * 30,
    ) -> None:
        self._resume_llm = resume_llm
        self._profile_llm = profile_llm or resume_llm
        self._resume_max_tokens = resume_max_tokens
        self._resume_timeout_s = resume_timeout_s
        self._profile_max_tokens = profile_max_tokens
        self._profile_timeout_s = profile_timeout_s
        self.score_resume = memoize(
            self._score_resume,
            max_size=memo_max_size,
            ttl_s=memo_ttl_s,
            ignore=("token",),
        )

    async def _score_resume(
        self,
        resume_text: str,
        job_description: str,
        token: CancellationToken | None = None,
    ) -> str:
        """Raw bullet-point analysis of a resume against a job description."""
        response = await self._resume_llm.complete(
            build_resume_messages(resume_text, job_description),
            token=token,
            system=RESUME_SYSTEM_PROMPT,
            max_tokens=self._resume_max_tokens,
            temperature=0.1,
            timeout_s=self._resume_timeout_s,
            top_p=0.7,
            presence_penalty=0,
            frequency_penalty=0,
            response_format={"type": "text"},
        )
        logger.debug(
            "Resume scored by %s in %dms", response.model, response.latency_ms
        )
        return response.content

    async def review_profile(
        self, prompt: str, token: CancellationToken | None = None
    ) -> ProfileReview:
        """Score and critique a profile digest.

        Raises:
            ServiceResponseError: The model returned an empty answer.
        """
        response = await self._profile_llm.complete(
            build_profile_review_messages(prompt),
            token=token,
            max_tokens=self._profile_max_tokens,
            temperature=0.1,
            timeout_s=self._profile_timeout_s,
            top_p=0.5,
            presence_penalty=0,
            frequency_penalty=0,
            response_format={"type": "text"},
        )
        if not response.content.strip():
            raise ServiceResponseError(
                "Empty response from AI service", service=response.provider
            )
        review = parse_profile_review(response.content)
        logger.debug(
            "Profile reviewed by %s in %dms: score=%d",
            response.model, response.latency_ms, review.score,
        )
        return review

    async def aclose(self) -> None:
        await self._resume_llm.aclose()
        if self._profile_llm is not self._resume_llm:
            await self._profile_llm.aclose()
