# src/llm/models.py — v2
"""AI endpoint types: Message, chat-completion response schema, LLMResponse."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant", "system"]
    content: str


# === CHAT COMPLETION RESPONSE (OpenAI-compatible) ===


class ChatCompletionMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: str


class ChatCompletionChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: ChatCompletionMessage
    finish_reason: str | None = None


class ChatCompletionUsage(BaseModel):
    model_config = ConfigDict(extra="allow")

    prompt_tokens: int = 0
    completion_tokens: int = 0


class ChatCompletion(BaseModel):
    """Response body of ``POST /chat/completions``. Unknown fields tolerated."""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    model: str = ""
    choices: list[ChatCompletionChoice] = Field(min_length=1)
    usage: ChatCompletionUsage | None = None


class LLMResponse(BaseModel):
    """Normalized response from any AI provider."""

    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str
    provider: str
    latency_ms: int
    raw_response: Any = None
