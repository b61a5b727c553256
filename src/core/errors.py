# src/core/errors.py — v1
"""Exception taxonomy shared by every careerlens layer.

Callers of the orchestrator only ever see a complete result,
AnalysisCancelledError, or one human-readable InputValidationError /
ExternalServiceError. Everything else is handled internally.
"""

from __future__ import annotations


class CareerLensError(Exception):
    """Base class for all careerlens errors."""


class InputValidationError(CareerLensError):
    """Malformed or insufficient input. Never retried."""


class AnalysisCancelledError(CareerLensError):
    """Cooperative cancellation was requested through a CancellationToken."""

    def __init__(self, reason: str = "Analysis cancelled by user") -> None:
        self.reason = reason
        super().__init__(reason)


class ExternalServiceError(CareerLensError):
    """Failure talking to an external HTTP service."""

    def __init__(
        self,
        message: str,
        service: str = "external",
        status_code: int | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        super().__init__(message)


class TransientServiceError(ExternalServiceError):
    """Timeout, 429, 5xx or network failure.

    Raised per attempt inside the retry loop, and once more (with a user
    facing message) when every attempt has been used.
    """

    def __init__(
        self,
        message: str,
        service: str = "external",
        status_code: int | None = None,
        error_type: str = "unknown",
        attempts: int = 0,
    ) -> None:
        self.error_type = error_type
        self.attempts = attempts
        super().__init__(message, service=service, status_code=status_code)


class ServiceResponseError(ExternalServiceError):
    """Non-retryable failure: 4xx other than 429, or a malformed response."""


class WorkerError(CareerLensError):
    """Failure reported by the worker execution context."""

    def __init__(self, message: str, code: str = "EXTRACTION_ERROR") -> None:
        self.code = code
        super().__init__(message)


class PersistenceError(CareerLensError):
    """Durable write failure. Always caught inside the persistence chain."""

    def __init__(self, message: str, strategy: str = "unknown") -> None:
        self.strategy = strategy
        super().__init__(message)


class ConfigurationError(CareerLensError):
    """Raised when configuration is internally inconsistent or incomplete."""
