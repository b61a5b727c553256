# src/llm/retry.py — v2
"""Retry policy with exponential backoff for external calls.

Only TransientServiceError (timeout, 429, 5xx, network) is retried.
Every backoff sleep is cancellable through the caller's token.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from careerlens.core.cancellation import CancellationToken, run_cancellable
from careerlens.core.errors import TransientServiceError

if TYPE_CHECKING:
    from careerlens.config.settings import Settings

logger = logging.getLogger(__name__)

_EXHAUSTED_MESSAGES: dict[str, str] = {
    "timeout": "The {service} service took too long to respond. Please try again in a few moments.",
    "rate_limit": "The {service} service is receiving too many requests. Please try again in a few moments.",
}
_DEFAULT_EXHAUSTED = "The {service} service is temporarily unavailable. Please try again in a few moments."


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff configuration shared by every external endpoint."""

    max_attempts: int = 3
    base_delay_s: float = 2.0
    max_delay_s: float = 8.0
    backoff_factor: float = 2.0
    jitter: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=settings.http_max_attempts,
            base_delay_s=settings.http_backoff_base_s,
            max_delay_s=settings.http_backoff_max_s,
            jitter=settings.http_backoff_jitter,
        )


@dataclass
class RetryState:
    """Progress of one call invocation through its attempts."""

    attempt: int
    max_attempts: int
    last_error: Exception | None = None

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


def classify_status(status_code: int) -> str | None:
    """Retry error type for an HTTP status, or None if not retryable."""
    if status_code == 429:
        return "rate_limit"
    if status_code >= 500:
        return "server_error"
    return None


def compute_delay(policy: RetryPolicy, attempt: int) -> float:
    """Delay after the given failed attempt (1-based), capped at max_delay_s."""
    delay = policy.base_delay_s * (policy.backoff_factor ** (attempt - 1))
    if policy.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return min(delay, policy.max_delay_s)


def exhausted_message(service: str, error_type: str) -> str:
    template = _EXHAUSTED_MESSAGES.get(error_type, _DEFAULT_EXHAUSTED)
    return template.format(service=service)


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    policy: RetryPolicy | None = None,
    token: CancellationToken | None = None,
    operation: str = "external call",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any,
) -> Any:
    """Execute an async function, retrying transient failures.

    Raises:
        TransientServiceError: Every attempt failed transiently. The message
            is meant for end users and carries no attempt count.
        AnalysisCancelledError: ``token`` was aborted during an attempt or
            a backoff sleep. Never retried.
        Exception: Any non-transient error from ``fn``, unchanged.
    """
    policy = policy or RetryPolicy()
    state = RetryState(attempt=0, max_attempts=policy.max_attempts)

    while True:
        if token is not None:
            token.raise_if_aborted()
        state.attempt += 1
        try:
            return await fn(*args, **kwargs)
        except TransientServiceError as e:
            state.last_error = e
            if state.exhausted:
                logger.error(
                    "%s failed after %d attempts (%s): %s",
                    operation, state.attempt, e.error_type, e,
                )
                raise TransientServiceError(
                    exhausted_message(e.service, e.error_type),
                    service=e.service,
                    status_code=e.status_code,
                    error_type=e.error_type,
                    attempts=state.attempt,
                ) from e

            delay = compute_delay(policy, state.attempt)
            logger.warning(
                "%s: %s (attempt %d/%d), retrying in %.1fs",
                operation, e.error_type, state.attempt, state.max_attempts, delay,
            )
            await run_cancellable(sleep(delay), token)
