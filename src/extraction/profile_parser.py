# src/extraction/profile_parser.py — v1
"""Normalize a raw profile document and derive completeness signals.

Runs inside the worker execution context. Input is the loosely-typed
JSON document returned by the profile data-fetch endpoint.
"""

from __future__ import annotations

from typing import Any

from careerlens.core.errors import WorkerError
from careerlens.core.models import (
    Education,
    Experience,
    NormalizedProfile,
    ProfileSuggestion,
)

MAX_INITIAL_SCORE = 90
DESCRIPTION_PREVIEW_CHARS = 200
DETAILED_DESCRIPTION_CHARS = 50


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _year(value: Any) -> int | None:
    if isinstance(value, dict) and isinstance(value.get("year"), int) and value["year"]:
        return value["year"]
    return None


def _date_range(entry: dict[str, Any], open_ended: str = "Present") -> str:
    """``date_range`` if given, else built from ``starts_at``/``ends_at`` years."""
    if isinstance(entry.get("date_range"), str):
        return entry["date_range"]
    start = _year(entry.get("starts_at"))
    if start is None:
        return ""
    end = _year(entry.get("ends_at"))
    if end is None:
        return f"{start} - {open_ended}" if open_ended else str(start)
    return f"{start} - {end}"


def extract_experiences(raw: dict[str, Any]) -> list[Experience]:
    items = raw.get("experiences")
    if not isinstance(items, list):
        return []
    return [
        Experience(
            title=_text(exp.get("title")),
            company=_text(exp.get("company_name") or exp.get("company")),
            description=_text(exp.get("description")),
            date_range=_date_range(exp),
            duration=_text(exp.get("duration")),
            location=_text(exp.get("location")),
        )
        for exp in items
        if isinstance(exp, dict)
    ]


def extract_education(raw: dict[str, Any]) -> list[Education]:
    items = raw.get("education")
    if not isinstance(items, list):
        return []
    return [
        Education(
            school=_text(edu.get("school")),
            degree=_text(edu.get("degree") or edu.get("degree_name")),
            field_of_study=_text(edu.get("field_of_study")),
            date_range=_date_range(edu, open_ended=""),
        )
        for edu in items
        if isinstance(edu, dict)
    ]


def extract_profile_skills(raw: dict[str, Any]) -> list[str]:
    """Skill names from a list of strings or ``{"name": ...}`` objects."""
    items = raw.get("skills")
    if not isinstance(items, list):
        return []
    names: list[str] = []
    for skill in items:
        if isinstance(skill, str):
            name = skill
        elif isinstance(skill, dict):
            name = _text(skill.get("name"))
        else:
            name = ""
        if name:
            names.append(name)
    return names


def build_profile_summary(
    full_name: str,
    headline: str,
    summary: str,
    skills: list[str],
    experiences: list[Experience],
    education: list[Education],
) -> str:
    """Plain-text profile digest sent to the AI reviewer."""
    lines = [f"Name: {full_name}", f"Headline: {headline}", ""]

    if summary:
        lines += ["Summary:", summary, ""]

    if skills:
        lines += [f"Skills: {', '.join(skills)}", ""]

    if experiences:
        lines.append("Experience:")
        for exp in experiences:
            dates = f" ({exp.date_range})" if exp.date_range else ""
            lines.append(f"- {exp.title} at {exp.company}{dates}")
            if exp.description:
                preview = exp.description[:DESCRIPTION_PREVIEW_CHARS]
                if len(exp.description) > DESCRIPTION_PREVIEW_CHARS:
                    preview += "..."
                lines.append(f"  {preview}")
        lines.append("")

    if education:
        lines.append("Education:")
        for edu in education:
            field = f" in {edu.field_of_study}" if edu.field_of_study else ""
            dates = f" ({edu.date_range})" if edu.date_range else ""
            lines.append(f"- {edu.degree}{field} at {edu.school}{dates}")

    return "\n".join(lines).rstrip() + "\n"


def calculate_initial_score(
    has_picture: bool,
    full_name: str,
    headline: str,
    summary: str,
    skills: list[str],
    experiences: list[Experience],
    education: list[Education],
) -> int:
    """Completeness score, capped below 100 to leave room for the AI review."""
    score = 0
    if has_picture:
        score += 5
    if full_name:
        score += 5
    if headline:
        score += 10
    if summary:
        score += 15

    score += min(len(skills) * 2, 20)
    score += min(len(experiences) * 5, 25)
    score += min(len(education) * 5, 10)
    score += sum(
        2 for exp in experiences
        if len(exp.description) > DETAILED_DESCRIPTION_CHARS
    )
    return min(score, MAX_INITIAL_SCORE)


def parse_profile_data(raw: dict[str, Any]) -> NormalizedProfile:
    """Normalize a raw profile document.

    Raises:
        WorkerError: ``INVALID_INPUT`` if ``raw`` is not a mapping.
    """
    if not isinstance(raw, dict):
        raise WorkerError("Profile data must be an object", code="INVALID_INPUT")

    full_name = _text(raw.get("full_name"))
    headline = _text(raw.get("headline"))
    summary = _text(raw.get("summary"))
    picture = _text(raw.get("profile_pic_url") or raw.get("image_url"))
    experiences = extract_experiences(raw)
    education = extract_education(raw)
    skills = extract_profile_skills(raw)

    return NormalizedProfile(
        full_name=full_name,
        headline=headline,
        summary=summary,
        profile_pic_url=picture,
        experiences=experiences,
        education=education,
        skills=skills,
        profile_summary=build_profile_summary(
            full_name, headline, summary, skills, experiences, education
        ),
        initial_score=calculate_initial_score(
            bool(picture), full_name, headline, summary, skills, experiences, education
        ),
    )


def generate_initial_suggestions(profile: NormalizedProfile) -> list[ProfileSuggestion]:
    """Rule-based suggestions from profile completeness alone."""
    suggestions: list[ProfileSuggestion] = []

    if not profile.profile_pic_url:
        suggestions.append(ProfileSuggestion(
            section="profile",
            text="Add a professional profile picture to enhance credibility",
            priority="high",
        ))

    if not profile.headline:
        suggestions.append(ProfileSuggestion(
            section="profile",
            text="Add a compelling headline that showcases your expertise and value proposition",
            priority="high",
        ))
    elif len(profile.headline) < 40:
        suggestions.append(ProfileSuggestion(
            section="profile",
            text="Enhance your headline with more specific skills and achievements",
            priority="medium",
        ))

    if not profile.summary:
        suggestions.append(ProfileSuggestion(
            section="profile",
            text="Add a professional summary to highlight your key achievements and career goals",
            priority="high",
        ))
    elif len(profile.summary) < 200:
        suggestions.append(ProfileSuggestion(
            section="profile",
            text="Expand your summary to showcase your unique value proposition and career journey",
            priority="medium",
        ))

    if len(profile.skills) < 5:
        suggestions.append(ProfileSuggestion(
            section="skills",
            text="Add more skills to your profile to improve visibility in searches",
            priority="high",
        ))

    if not profile.experiences:
        suggestions.append(ProfileSuggestion(
            section="experience",
            text="Add your work experience to make your profile more complete",
            priority="high",
        ))
    else:
        thin = [
            exp for exp in profile.experiences
            if len(exp.description) < DETAILED_DESCRIPTION_CHARS
        ]
        if thin:
            suggestions.append(ProfileSuggestion(
                section="experience",
                text=f"Add detailed descriptions to {len(thin)} work experience entries",
                priority="medium",
            ))

    return suggestions
