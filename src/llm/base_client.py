# src/llm/base_client.py — v2
"""Abstract AI client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from careerlens.core.cancellation import CancellationToken
from careerlens.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all chat-completion providers."""

    @abstractmethod
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
        """Text completion. ``options`` are extra body fields (top_p, ...)."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (openrouter, openai)."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier sent with every request."""

    async def aclose(self) -> None:
        """Release HTTP resources. Default: nothing to release."""
