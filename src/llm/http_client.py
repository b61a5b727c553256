# src/llm/http_client.py — v1
"""ExternalCallClient: one retrying, cancellable, time-bounded HTTP call.

Every external endpoint (AI scoring, profile data-fetch) goes through
ExternalCallClient.call(). Each attempt is bounded by the request timeout,
retried per RetryPolicy on transient failures, and aborted immediately
when the caller's CancellationToken fires.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import httpx
from pydantic import BaseModel, ValidationError

from careerlens.core.cancellation import CancellationToken, run_cancellable
from careerlens.core.errors import ServiceResponseError, TransientServiceError
from careerlens.llm.retry import RetryPolicy, classify_status, with_retry
from careerlens.tracking.performance_monitor import PerformanceMonitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalRequest:
    """Description of one logical call to an external endpoint."""

    method: str
    url: str
    service: str = "external"
    timeout_s: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    json: Any = None
    response_model: type[BaseModel] | None = None


class ExternalCallClient:
    """Retrying HTTP client over a shared httpx.AsyncClient.

    Args:
        policy: Retry/backoff policy.
        transport: Optional httpx transport (tests use httpx.MockTransport).
        client: Pre-built client; not closed by aclose().
        monitor: Latency monitor, keyed ``http.<service>``.
        sleep: Backoff sleep function.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
        monitor: PerformanceMonitor | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(transport=transport)
        self._monitor = monitor
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def call(
        self, request: ExternalRequest, token: CancellationToken | None = None
    ) -> Any:
        """Perform ``request`` with retries.

        Returns:
            The validated ``response_model`` instance, or the decoded JSON
            body when the request has no response model.

        Raises:
            TransientServiceError: Retries exhausted.
            ServiceResponseError: Non-retryable status or malformed body.
            AnalysisCancelledError: ``token`` aborted.
        """
        return await with_retry(
            self._attempt,
            request,
            token,
            policy=self._policy,
            token=token,
            operation=f"{request.service} {request.method} request",
            sleep=self._sleep,
        )

    async def _attempt(
        self, request: ExternalRequest, token: CancellationToken | None
    ) -> Any:
        stop = (
            self._monitor.start_measurement(f"http.{request.service}")
            if self._monitor else None
        )
        try:
            response = await run_cancellable(
                asyncio.wait_for(self._send(request), request.timeout_s), token
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise TransientServiceError(
                f"{request.service} request timed out after {request.timeout_s:.0f}s",
                service=request.service,
                error_type="timeout",
            ) from e
        except httpx.TransportError as e:
            raise TransientServiceError(
                f"{request.service} network error: {e}",
                service=request.service,
                error_type="network",
            ) from e
        finally:
            if stop is not None:
                stop()

        return self._decode(request, response)

    async def _send(self, request: ExternalRequest) -> httpx.Response:
        return await self._client.request(
            request.method,
            request.url,
            headers=request.headers,
            params=request.params,
            json=request.json,
            timeout=request.timeout_s,
        )

    def _decode(self, request: ExternalRequest, response: httpx.Response) -> Any:
        status = response.status_code
        if status >= 400:
            error_type = classify_status(status)
            message = f"{request.service} request failed: HTTP {status} {response.reason_phrase}"
            if error_type is not None:
                raise TransientServiceError(
                    message,
                    service=request.service,
                    status_code=status,
                    error_type=error_type,
                )
            raise ServiceResponseError(message, service=request.service, status_code=status)

        try:
            payload = response.json()
        except ValueError as e:
            raise ServiceResponseError(
                f"{request.service} returned a body that is not valid JSON",
                service=request.service,
                status_code=status,
            ) from e

        if request.response_model is None:
            return payload
        try:
            return request.response_model.model_validate(payload)
        except ValidationError as e:
            logger.warning("Unexpected %s response shape: %s", request.service, e)
            raise ServiceResponseError(
                f"{request.service} returned an unexpected response format",
                service=request.service,
                status_code=status,
            ) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ExternalCallClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
