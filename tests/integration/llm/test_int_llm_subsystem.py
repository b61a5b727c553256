# tests/integration/llm/test_int_llm_subsystem.py — v2
"""Integration tests for the AI client stack.

Covers: llm/config.py → llm/client_factory.py → adapters/openai_compat_adapter.py
→ llm/http_client.py → llm/retry.py, and llm/scoring_client.py on top.
The chat-completions endpoint is served by httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from careerlens.core.cancellation import CancellationToken
from careerlens.core.errors import (
    AnalysisCancelledError,
    ConfigurationError,
    ServiceResponseError,
    TransientServiceError,
)
from careerlens.llm.client_factory import create_llm_client
from careerlens.llm.config import resolve_llm
from careerlens.llm.http_client import ExternalCallClient
from careerlens.llm.retry import RetryPolicy
from careerlens.llm.scoring_client import AIScoringClient
from careerlens.tracking.performance_monitor import PerformanceMonitor


def _completion(content: str, model: str = "google/gemini-flash-1.5-8b") -> httpx.Response:
    return httpx.Response(200, json={
        "id": "gen-1",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 210, "completion_tokens": 55, "total_tokens": 265},
    })


class ChatEndpoint:
    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return httpx.Response(
            response.status_code, content=response.content, headers=response.headers
        )

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _stack(settings, endpoint, component="resume_scorer", **policy):
    monitor = PerformanceMonitor()
    http = ExternalCallClient(
        RetryPolicy(**{"max_attempts": 3, "base_delay_s": 0, "max_delay_s": 0, **policy}),
        transport=httpx.MockTransport(endpoint),
        monitor=monitor,
    )
    assignment = resolve_llm(component, settings)
    client = create_llm_client(assignment.provider, assignment.model, settings, http=http)
    return client, http, monitor


class TestResolvedClient:

    @pytest.mark.asyncio
    async def test_openrouter_request_shape(self, settings):
        endpoint = ChatEndpoint(_completion("• Tailor the summary"))
        client, http, _ = _stack(settings, endpoint)
        try:
            scoring = AIScoringClient(client)
            text = await scoring.score_resume("resume text", "job text")
        finally:
            await http.aclose()

        assert text == "• Tailor the summary"
        request = endpoint.requests[0]
        assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer test-openrouter-key"
        assert request.headers["X-Title"] == "careerlens"
        body = endpoint.bodies[0]
        assert body["model"] == "google/gemini-flash-1.5-8b"
        assert body["max_tokens"] == 250
        assert body["top_p"] == 0.7
        assert body["messages"][0]["role"] == "system"

    @pytest.mark.asyncio
    async def test_profile_reviewer_uses_component_model(self, settings, profile_review_text):
        endpoint = ChatEndpoint(_completion(profile_review_text, "google/gemini-2.5-flash-preview"))
        client, http, _ = _stack(settings, endpoint, component="profile_reviewer")
        try:
            review = await AIScoringClient(client).review_profile("Name: Jane Doe")
        finally:
            await http.aclose()

        assert endpoint.bodies[0]["model"] == "google/gemini-2.5-flash-preview"
        assert review.score == 82
        assert review.suggestions

    @pytest.mark.asyncio
    async def test_missing_key_fails_before_sending(self, settings):
        settings = settings.model_copy(update={"openrouter_api_key": ""})
        endpoint = ChatEndpoint(_completion("x"))
        client, http, _ = _stack(settings, endpoint)
        try:
            with pytest.raises(ConfigurationError):
                await AIScoringClient(client).score_resume("r", "j")
        finally:
            await http.aclose()
        assert endpoint.requests == []


class TestRetriesEndToEnd:

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self, settings):
        endpoint = ChatEndpoint(
            httpx.Response(429, json={"error": "rate limited"}),
            httpx.Response(503),
            _completion("• Add metrics"),
        )
        client, http, monitor = _stack(settings, endpoint)
        try:
            text = await AIScoringClient(client).score_resume("r", "j")
        finally:
            await http.aclose()
        assert text == "• Add metrics"
        assert len(endpoint.requests) == 3
        assert monitor.stats("http.openrouter").count == 3

    @pytest.mark.asyncio
    async def test_ceiling(self, settings):
        endpoint = ChatEndpoint(httpx.Response(429))
        client, http, _ = _stack(settings, endpoint, max_attempts=4)
        try:
            with pytest.raises(TransientServiceError):
                await AIScoringClient(client).score_resume("r", "j")
        finally:
            await http.aclose()
        assert len(endpoint.requests) == 4

    @pytest.mark.asyncio
    async def test_failures_not_memoized(self, settings):
        endpoint = ChatEndpoint(httpx.Response(400), _completion("• Fine now"))
        client, http, _ = _stack(settings, endpoint)
        scoring = AIScoringClient(client)
        try:
            with pytest.raises(ServiceResponseError):
                await scoring.score_resume("r", "j")
            assert await scoring.score_resume("r", "j") == "• Fine now"
            assert await scoring.score_resume("r", "j") == "• Fine now"
        finally:
            await http.aclose()
        assert len(endpoint.requests) == 2

    @pytest.mark.asyncio
    async def test_abort_during_backoff(self, settings):
        endpoint = ChatEndpoint(httpx.Response(503))
        client, http, _ = _stack(settings, endpoint, base_delay_s=5, max_delay_s=5)
        token = CancellationToken()
        try:
            call = asyncio.ensure_future(
                AIScoringClient(client).score_resume("r", "j", token=token)
            )
            while not endpoint.requests:
                await asyncio.sleep(0.01)
            token.abort("user left")
            with pytest.raises(AnalysisCancelledError):
                await call
        finally:
            await http.aclose()
        assert len(endpoint.requests) == 1
