# src/worker/tasks.py — v1
"""Worker-side dispatch: executes a WorkerRequest and always returns a reply.

handle() runs inside the executor (a child process by default). It never
raises: every failure is encoded into the WorkerReply.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from careerlens.core.errors import WorkerError
from careerlens.extraction.profile_parser import (
    generate_initial_suggestions,
    parse_profile_data,
)
from careerlens.extraction.skills import extract_keywords, extract_skills
from careerlens.worker.protocol import (
    EXTRACT_KEYWORDS,
    EXTRACT_SKILLS,
    GENERATE_INITIAL_SUGGESTIONS,
    PARSE_PROFILE_DATA,
    WorkerReply,
    WorkerRequest,
)

logger = logging.getLogger(__name__)

METHODS: dict[str, Callable[..., Any]] = {
    EXTRACT_SKILLS: extract_skills,
    EXTRACT_KEYWORDS: extract_keywords,
    PARSE_PROFILE_DATA: parse_profile_data,
    GENERATE_INITIAL_SUGGESTIONS: generate_initial_suggestions,
}


def handle(request: WorkerRequest) -> WorkerReply:
    fn = METHODS.get(request.method)
    if fn is None:
        return WorkerReply(
            call_id=request.call_id,
            ok=False,
            error_code="UNKNOWN_METHOD",
            error_message=f"Unknown worker method: {request.method}",
        )
    try:
        result = fn(*request.args)
    except WorkerError as e:
        return WorkerReply(
            call_id=request.call_id, ok=False, error_code=e.code, error_message=str(e)
        )
    except Exception as e:
        logger.exception("Worker method %s failed", request.method)
        return WorkerReply(
            call_id=request.call_id,
            ok=False,
            error_code="EXTRACTION_ERROR",
            error_message=str(e) or type(e).__name__,
        )
    return WorkerReply(call_id=request.call_id, ok=True, result=result)
