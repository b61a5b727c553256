# src/llm/adapters/openai_compat_adapter.py — v1
"""OpenAI-compatible chat-completions adapter implementing BaseLLMClient.

Speaks the ``POST <base_url>/chat/completions`` protocol shared by
OpenRouter and OpenAI over ExternalCallClient, so every completion gets
the same timeout, retry and cancellation handling.
"""

from __future__ import annotations

import time
from typing import Any

from careerlens.core.cancellation import CancellationToken
from careerlens.core.errors import ConfigurationError
from careerlens.llm.base_client import BaseLLMClient
from careerlens.llm.http_client import ExternalCallClient, ExternalRequest
from careerlens.llm.models import ChatCompletion, LLMResponse, Message


class OpenAICompatibleAdapter(BaseLLMClient):
    """Chat-completions adapter for OpenRouter, OpenAI and compatible APIs."""

    def __init__(
        self,
        model: str,
        api_key: str = "",
        base_url: str = "https://openrouter.ai/api/v1",
        provider: str = "openrouter",
        http: ExternalCallClient | None = None,
        timeout_s: float = 30.0,
        extra_headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._provider = provider
        self._owns_http = http is None
        self._http = http or ExternalCallClient()
        self._timeout_s = timeout_s
        self._extra_headers = dict(extra_headers or {})

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
        if not self._api_key:
            raise ConfigurationError(
                f"No API key configured for AI provider {self._provider!r}"
            )

        chat_messages: list[dict[str, Any]] = []
        if system:
            chat_messages.append({"role": "system", "content": system})
        for m in messages:
            chat_messages.append({"role": m.role, "content": m.content})

        body: dict[str, Any] = {
            "model": self._model,
            "messages": chat_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        body.update(options)

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            **self._extra_headers,
        }
        request = ExternalRequest(
            method="POST",
            url=f"{self._base_url}/chat/completions",
            service=self._provider,
            timeout_s=timeout_s or self._timeout_s,
            headers=headers,
            json=body,
            response_model=ChatCompletion,
        )

        t0 = time.monotonic()
        completion: ChatCompletion = await self._http.call(request, token)
        latency = int((time.monotonic() - t0) * 1000)

        usage = completion.usage
        return LLMResponse(
            content=completion.choices[0].message.content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=completion.model or self._model,
            provider=self._provider,
            latency_ms=latency,
            raw_response=completion,
        )

    @property
    def provider_name(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
