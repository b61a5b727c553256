# tests/integration/conftest.py — v8
"""Shared fixtures for integration tests.

No Docker or network required: AI calls go through MockLLMClient or
httpx.MockTransport, storage lives under tmp_path.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from careerlens.core.cancellation import CancellationToken, run_cancellable
from careerlens.llm.base_client import BaseLLMClient
from careerlens.llm.models import LLMResponse, Message
from careerlens.worker.channel import WorkerChannel


# =====================================================================
#  MOCK LLM CLIENT
# =====================================================================

class MockLLMClient(BaseLLMClient):
    """Scripted AI client for integration tests.

    Responses are served from a queue, then the default. When ``gate`` is
    set, every call waits for it (honouring the cancellation token) so
    tests can hold requests in flight.
    """

    def __init__(self, default_response: str = "• Mock suggestion"):
        self._default_response = default_response
        self._response_queue: list[str] = []
        self.calls: list[dict[str, Any]] = []
        self.gate: asyncio.Event | None = None

    def set_responses(self, *responses: str) -> None:
        self._response_queue = list(responses)

    def set_default(self, response: str) -> None:
        self._default_response = response

    async def complete(
        self,
        messages: list[Message],
        token: CancellationToken | None = None,
        system: str | None = None,
        max_tokens: int = 300,
        temperature: float = 0.1,
        timeout_s: float | None = None,
        **options: Any,
    ) -> LLMResponse:
        self.calls.append({
            "messages": messages, "system": system,
            "max_tokens": max_tokens, "temperature": temperature,
            "options": options,
        })
        if self.gate is not None:
            await run_cancellable(self.gate.wait(), token)
        content = self._response_queue.pop(0) if self._response_queue else self._default_response
        return LLMResponse(
            content=content, input_tokens=50, output_tokens=len(content) // 4,
            model="mock-model", provider="mock", latency_ms=10,
            raw_response={"mock": True},
        )

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def model(self) -> str:
        return "mock-model"


@pytest.fixture
def mock_llm() -> MockLLMClient:
    return MockLLMClient()


@pytest.fixture
def thread_worker():
    worker = WorkerChannel(mode="thread")
    yield worker
    worker.shutdown()


@pytest.fixture
def profile_llm(profile_review_text) -> MockLLMClient:
    return MockLLMClient(default_response=profile_review_text)
