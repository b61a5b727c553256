# src/llm/prompts.py — v1
"""Prompt templates for the resume scorer and the profile reviewer."""

from __future__ import annotations

from careerlens.llm.models import Message

RESUME_CHAR_LIMIT = 1500
JOB_CHAR_LIMIT = 1000

RESUME_SYSTEM_PROMPT = """You are an expert resume analyst. Analyze the provided resume and job description to generate relevant bullet points. Focus on:
1. Key skills that match the job
2. Quantifiable achievements
3. Relevant experience
4. Areas needing improvement

Format: Exactly 5 bullet points, each beginning with •
Keep responses concise and directly address job requirements."""

PROFILE_REVIEW_TEMPLATE = """LinkedIn profile review:

{prompt}

Output format (numbers only):
Score (1-100): [number]
Strengths:
- [strength 1]
- [strength 2]
Weaknesses:
- [weakness 1]
- [weakness 2]
Suggestions:
- [suggestion 1]
- [suggestion 2]"""


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` chars, marking the cut with an ellipsis."""
    return text[:limit] + "..." if len(text) > limit else text


def build_resume_messages(resume_text: str, job_description: str) -> list[Message]:
    content = (
        f"Job Description:\n{truncate(job_description, JOB_CHAR_LIMIT)}\n\n"
        f"Resume:\n{truncate(resume_text, RESUME_CHAR_LIMIT)}"
    )
    return [Message(role="user", content=content)]


def build_profile_review_messages(prompt: str) -> list[Message]:
    return [Message(role="user", content=PROFILE_REVIEW_TEMPLATE.format(prompt=prompt))]
