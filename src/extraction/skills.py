# src/extraction/skills.py — v1
"""Lexicon-based skill and keyword extraction, and skill-overlap scoring.

Pure functions: these run inside the worker execution context and must
stay picklable and free of I/O.
"""

from __future__ import annotations

import math
import re
from collections import Counter

from careerlens.core.errors import WorkerError
from careerlens.extraction.lexicon import (
    ALL_SKILLS,
    EXCLUDED_WORDS,
    MAX_PHRASE_WORDS,
    TECHNICAL_SKILLS,
)

_NON_WORD = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_TOKEN_STRIP = re.compile(r"[^a-z0-9-]")

MAX_KEYWORDS = 50


def _tokenize(text: str) -> list[str]:
    """Lowercase, blank out punctuation (hyphens kept), split on whitespace."""
    cleaned = _WHITESPACE.sub(" ", _NON_WORD.sub(" ", text.lower())).strip()
    return cleaned.split(" ") if cleaned else []


def extract_skills(text: str) -> list[str]:
    """Skills mentioned in ``text``, in order of first appearance.

    Matches single tokens against both lexicons, hyphenated compounds with
    at least one technical part (each known part is reported as well), and
    runs of two or three adjacent tokens whose concatenation is a technical
    skill ("spring boot" -> "springboot").
    """
    if not isinstance(text, str):
        raise WorkerError("Invalid input text", code="INVALID_INPUT")

    tokens = _tokenize(text)
    found: dict[str, None] = {}

    for i, token in enumerate(tokens):
        if token in ALL_SKILLS:
            found.setdefault(token, None)
        elif "-" in token:
            parts = [p for p in token.split("-") if p]
            known = [p for p in parts if p in ALL_SKILLS]
            for part in known:
                found.setdefault(part, None)
            if any(p in TECHNICAL_SKILLS for p in parts):
                found.setdefault(token, None)

        for width in range(2, MAX_PHRASE_WORDS + 1):
            window = tokens[i:i + width]
            if len(window) < width:
                break
            joined = "".join(window)
            if joined in TECHNICAL_SKILLS:
                found.setdefault(joined, None)

    return list(found)


def extract_keywords(text: str) -> list[str]:
    """Ranked lexicon keywords: technical before soft, then by frequency.

    Raises:
        WorkerError: ``INVALID_INPUT`` for empty/non-string input,
            ``EMPTY_TEXT`` when nothing survives cleaning, ``NO_KEYWORDS``
            when no lexicon entry is found.
    """
    if not text or not isinstance(text, str):
        raise WorkerError("Invalid input text", code="INVALID_INPUT")

    tokens = _tokenize(text)
    if not tokens:
        raise WorkerError("Text is empty after cleaning", code="EMPTY_TEXT")

    counts: Counter[str] = Counter()
    for token in tokens:
        word = _TOKEN_STRIP.sub("", token)
        if len(word) <= 2 or word in EXCLUDED_WORDS:
            continue
        if word in ALL_SKILLS:
            counts[word] += 1
        elif "-" in word and any(p in TECHNICAL_SKILLS for p in word.split("-")):
            counts[word] += 1

    if not counts:
        raise WorkerError("No keywords found in text", code="NO_KEYWORDS")

    # Counter preserves first-seen order, so ties keep text order.
    ranked = sorted(
        counts.items(),
        key=lambda item: (item[0] not in TECHNICAL_SKILLS, -item[1]),
    )
    return [word for word, _ in ranked[:MAX_KEYWORDS]]


def match_skills(
    resume_skills: list[str], job_skills: list[str]
) -> tuple[list[str], list[str]]:
    """Split job skills into (matching, missing).

    Matching keeps resume order, missing keeps job order.
    """
    job_set = set(job_skills)
    resume_set = set(resume_skills)
    matching = [s for s in _dedupe(resume_skills) if s in job_set]
    missing = [s for s in _dedupe(job_skills) if s not in resume_set]
    return matching, missing


def calculate_match_score(resume_skills: list[str], job_skills: list[str]) -> int:
    """Percentage of distinct job skills present in the resume, 0..100.

    Rounded half up; 0 when the job has no recognizable skills.
    """
    job_set = set(job_skills)
    if not job_set:
        return 0
    overlap = len(job_set & set(resume_skills))
    return min(round_half_up(overlap * 100 / len(job_set)), 100)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))
