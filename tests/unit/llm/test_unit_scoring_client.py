# tests/unit/llm/test_unit_scoring_client.py — v1
"""Tests for llm/scoring_client.py — resume scoring memo and review parsing."""

from __future__ import annotations

import pytest

from careerlens.core.cancellation import CancellationToken
from careerlens.core.errors import ServiceResponseError
from careerlens.llm.base_client import BaseLLMClient
from careerlens.llm.models import LLMResponse, Message
from careerlens.llm.prompts import build_resume_messages, truncate
from careerlens.llm.scoring_client import (
    DEFAULT_SUGGESTION,
    AIScoringClient,
    classify_suggestion,
    parse_profile_review,
    suggestions_from_text,
)

REVIEW_TEXT = """Score (1-100): 82
Strengths:
- Clear headline with specific skills
- Strong leadership experience
Weaknesses:
- Summary lacks measurable results
- Few endorsements listed
Suggestions:
- You should quantify achievements in each role
- Ask peers for endorsements of core skills
- Refresh the banner image"""


class FakeLLM(BaseLLMClient):
    def __init__(self, content: str = "• One\n• Two"):
        self.content = content
        self.calls: list[dict] = []

    async def complete(self, messages, token=None, system=None, max_tokens=300,
                       temperature=0.1, timeout_s=None, **options):
        self.calls.append({
            "messages": messages, "system": system, "max_tokens": max_tokens,
            "timeout_s": timeout_s, "options": options, "token": token,
        })
        return LLMResponse(content=self.content, model="fake", provider="fake", latency_ms=1)

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return "fake"


class TestPrompts:
    def test_truncate(self):
        assert truncate("abc", 5) == "abc"
        assert truncate("abcdef", 3) == "abc..."

    def test_resume_messages_truncated(self):
        messages = build_resume_messages("r" * 2000, "j" * 1200)
        content = messages[0].content
        assert content.startswith("Job Description:\n" + "j" * 1000 + "...")
        assert content.endswith("Resume:\n" + "r" * 1500 + "...")


class TestSuggestionsFromText:
    def test_first_five_stripped(self):
        text = "• One\n\n- Two\nThree\n• Four\n• Five\n• Six"
        assert suggestions_from_text(text) == ["One", "Two", "Three", "Four", "Five"]

    def test_empty(self):
        assert suggestions_from_text("") == []


class TestParseProfileReview:
    def test_full_answer(self):
        review = parse_profile_review(REVIEW_TEXT)
        assert review.score == 82
        assert review.strengths == [
            "Clear headline with specific skills",
            "Strong leadership experience",
        ]
        assert review.weaknesses == [
            "Summary lacks measurable results",
            "Few endorsements listed",
        ]
        assert [s.text for s in review.suggestions] == [
            "You should quantify achievements in each role",
            "Ask peers for endorsements of core skills",
            "Refresh the banner image",
        ]
        assert review.raw_text == REVIEW_TEXT

    def test_plain_score_label(self):
        assert parse_profile_review("Rating: 71").score == 71

    def test_score_clamped(self):
        assert parse_profile_review("Score: 250").score == 100

    def test_defaults_when_sections_missing(self):
        review = parse_profile_review("I cannot review this profile.")
        assert review.score == 50
        assert review.strengths == ["Has professional experience"]
        assert review.weaknesses == ["Limited quantifiable achievements"]
        assert review.suggestions == [DEFAULT_SUGGESTION]

    def test_at_most_three_items(self):
        text = "Strengths:\n" + "\n".join(f"- strength number {i}" for i in range(6))
        assert len(parse_profile_review(text).strengths) == 3

    def test_short_lines_dropped(self):
        text = "Strengths:\n- ok\n- Detailed career history"
        assert parse_profile_review(text).strengths == ["Detailed career history"]


class TestClassifySuggestion:
    def test_experience_high(self):
        s = classify_suggestion("You should quantify achievements in each role")
        assert (s.section, s.priority) == ("experience", "high")

    def test_network_medium(self):
        s = classify_suggestion("Ask peers for endorsements of core skills")
        assert (s.section, s.priority) == ("network", "medium")

    def test_profile_low(self):
        s = classify_suggestion("Consider a warmer banner image")
        assert (s.section, s.priority) == ("profile", "low")


class TestAIScoringClient:
    @pytest.mark.asyncio
    async def test_score_resume_request(self):
        llm = FakeLLM()
        client = AIScoringClient(llm, resume_max_tokens=250, resume_timeout_s=30.0)
        text = await client.score_resume("resume", "job")
        assert text == "• One\n• Two"
        call = llm.calls[0]
        assert call["system"].startswith("You are an expert resume analyst")
        assert call["max_tokens"] == 250
        assert call["timeout_s"] == 30.0
        assert call["options"]["top_p"] == 0.7
        assert isinstance(call["messages"][0], Message)

    @pytest.mark.asyncio
    async def test_score_resume_memoized_ignoring_token(self):
        llm = FakeLLM()
        client = AIScoringClient(llm)
        await client.score_resume("resume", "job", CancellationToken())
        await client.score_resume("resume", "job", token=CancellationToken())
        assert len(llm.calls) == 1
        await client.score_resume("resume", "other job")
        assert len(llm.calls) == 2

    @pytest.mark.asyncio
    async def test_score_resume_cache_clear(self):
        llm = FakeLLM()
        client = AIScoringClient(llm)
        await client.score_resume("resume", "job")
        client.score_resume.cache_clear()
        await client.score_resume("resume", "job")
        assert len(llm.calls) == 2

    @pytest.mark.asyncio
    async def test_review_profile_uses_profile_llm(self):
        resume_llm = FakeLLM()
        profile_llm = FakeLLM(REVIEW_TEXT)
        client = AIScoringClient(resume_llm, profile_llm, profile_max_tokens=300)
        review = await client.review_profile("PROFILE: Ada | Engineer")
        assert review.score == 82
        assert resume_llm.calls == []
        call = profile_llm.calls[0]
        assert call["system"] is None
        assert call["max_tokens"] == 300
        assert "PROFILE: Ada | Engineer" in call["messages"][0].content
        assert call["messages"][0].content.startswith("LinkedIn profile review:")

    @pytest.mark.asyncio
    async def test_review_profile_empty_answer(self):
        client = AIScoringClient(FakeLLM("   "))
        with pytest.raises(ServiceResponseError, match="Empty response"):
            await client.review_profile("PROFILE: Ada")
