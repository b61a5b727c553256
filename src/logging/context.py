# src/logging/context.py — v2
"""Contextual logging support — attach request_id, fingerprint, operation
and stage to log records.

Context variables are copied into every asyncio task at creation, so the
shared computation behind a deduplicated request logs with the context of
the caller that started it.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_fingerprint: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "fingerprint", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    fingerprint: str | None = None
    operation: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        fingerprint=_fingerprint.get(),
        operation=_operation.get(),
        stage=_stage.get(),
    )


def set_request_context(
    request_id: str, operation: str, fingerprint: str | None = None
) -> None:
    """Set request-level context (called once per analyze call)."""
    _request_id.set(request_id)
    _operation.set(operation)
    _fingerprint.set(fingerprint[:12] if fingerprint else None)


def set_stage_context(stage: str | None) -> None:
    """Set the current state-machine stage."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _fingerprint.set(None)
    _operation.set(None)
    _stage.set(None)
