# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

import re
from typing import Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# === SUGGESTIONS ===

SuggestionSection = Literal["profile", "experience", "network", "skills", "education"]
SuggestionPriority = Literal["high", "medium", "low"]


class ProfileSuggestion(BaseModel):
    """Actionable improvement for a LinkedIn profile section."""

    model_config = ConfigDict(frozen=True)

    section: SuggestionSection
    text: str
    priority: SuggestionPriority = "medium"


# === ANALYSIS RESULT ===


class AnalysisResult(BaseModel):
    """Outcome of one orchestration run. Frozen once assembled."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["resume", "linkedin"]
    score: int = Field(ge=0, le=100)
    matching_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    suggestions: Union[list[ProfileSuggestion], list[str]] = Field(
        default_factory=list
    )
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    raw_model_text: str = ""
    confidence: Literal["full", "reduced"] = "full"
    warnings: list[str] = Field(default_factory=list)


# === PROFILE ===


class Experience(BaseModel):
    """Normalized work experience entry."""

    title: str = ""
    company: str = ""
    description: str = ""
    date_range: str = ""
    duration: str = ""
    location: str = ""


class Education(BaseModel):
    """Normalized education entry."""

    school: str = ""
    degree: str = ""
    field_of_study: str = ""
    date_range: str = ""


class NormalizedProfile(BaseModel):
    """Worker output of profile parsing."""

    full_name: str = ""
    headline: str = ""
    summary: str = ""
    profile_pic_url: str = ""
    experiences: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    profile_summary: str = ""
    initial_score: int = Field(default=0, ge=0, le=100)

    @property
    def has_sufficient_data(self) -> bool:
        return bool(
            self.full_name or self.headline or self.summary or self.experiences
        )


class ProfileReview(BaseModel):
    """Parsed AI review of a LinkedIn profile."""

    score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    suggestions: list[ProfileSuggestion] = Field(default_factory=list)
    raw_text: str = ""


# === REQUESTS ===

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs and strip. Case is preserved."""
    return _WHITESPACE.sub(" ", text).strip()


class ResumeAnalysisRequest(BaseModel):
    """Normalized input for a resume-vs-job analysis."""

    model_config = ConfigDict(frozen=True)

    resume_text: str
    job_description: str

    @field_validator("resume_text", "job_description")
    @classmethod
    def _normalize(cls, v: str) -> str:  # noqa: N805
        v = normalize_text(v)
        if not v:
            raise ValueError("must not be empty")
        return v


# === STATUS EVENTS ===

AnalysisStatus = Literal["started", "fetching", "analyzing", "complete", "error"]
StatusListener = Callable[[AnalysisStatus, str], None]
