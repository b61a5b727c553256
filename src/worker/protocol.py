# src/worker/protocol.py — v1
"""Messages exchanged with the worker execution context.

Both types cross a process boundary, so they hold only picklable values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

EXTRACT_SKILLS = "extract_skills"
EXTRACT_KEYWORDS = "extract_keywords"
PARSE_PROFILE_DATA = "parse_profile_data"
GENERATE_INITIAL_SUGGESTIONS = "generate_initial_suggestions"


@dataclass(frozen=True)
class WorkerRequest:
    """One RPC call: ``method(*args)`` tagged with a channel-unique id."""

    call_id: int
    method: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class WorkerReply:
    """Outcome of one WorkerRequest. Errors travel as code + message."""

    call_id: int
    ok: bool
    result: Any = None
    error_code: str | None = None
    error_message: str = ""
