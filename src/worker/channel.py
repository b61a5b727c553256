# src/worker/channel.py — v1
"""Message-passing RPC stub in front of an isolated worker execution context.

The executor is created on first use and reused afterwards. In the default
``process`` mode nothing is shared with the event loop: requests and
replies are pickled across the process boundary.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from concurrent.futures import BrokenExecutor, Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Literal

from careerlens.core.cancellation import CancellationToken, run_cancellable
from careerlens.core.errors import WorkerError
from careerlens.core.models import NormalizedProfile, ProfileSuggestion
from careerlens.tracking.performance_monitor import PerformanceMonitor
from careerlens.worker.protocol import (
    EXTRACT_KEYWORDS,
    EXTRACT_SKILLS,
    GENERATE_INITIAL_SUGGESTIONS,
    PARSE_PROFILE_DATA,
    WorkerReply,
    WorkerRequest,
)
from careerlens.worker.tasks import handle

logger = logging.getLogger(__name__)

WorkerMode = Literal["process", "thread"]


class WorkerChannel:
    """Lazily started worker pool with typed RPC methods.

    Args:
        mode: ``process`` (isolated, default) or ``thread``.
        max_workers: Pool size.
        monitor: Optional latency recorder (``worker.<method>`` keys).
    """

    def __init__(
        self,
        mode: WorkerMode = "process",
        max_workers: int = 1,
        monitor: PerformanceMonitor | None = None,
    ) -> None:
        if mode not in ("process", "thread"):
            raise ValueError(f"Unsupported worker mode: {mode!r}")
        self._mode = mode
        self._max_workers = max(1, max_workers)
        self._monitor = monitor
        self._executor: Executor | None = None
        self._ids = itertools.count(1)
        self._starts = 0

    @property
    def started(self) -> bool:
        return self._executor is not None

    @property
    def start_count(self) -> int:
        """How many times a pool was created (1 unless it crashed)."""
        return self._starts

    def _ensure_executor(self) -> Executor:
        # Synchronous check-and-create: two calls in the same loop cannot
        # both observe an empty slot.
        if self._executor is None:
            if self._mode == "process":
                self._executor = ProcessPoolExecutor(max_workers=self._max_workers)
            else:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="careerlens-worker"
                )
            self._starts += 1
            logger.info("Worker started (mode=%s, workers=%d)", self._mode, self._max_workers)
        return self._executor

    def _discard_executor(self) -> None:
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def _crashed(self, cause: BaseException) -> WorkerError:
        logger.error("Worker pool unusable, will restart on next call: %s", cause)
        self._discard_executor()
        return WorkerError(f"Worker crashed: {cause}", code="WORKER_CRASHED")

    async def call(
        self,
        method: str,
        *args: Any,
        token: CancellationToken | None = None,
    ) -> Any:
        """Round-trip one request to the worker.

        Raises:
            WorkerError: The worker reported a failure or the pool crashed.
            AnalysisCancelledError: ``token`` was aborted before the reply.
                The worker may still finish; its reply is dropped.
        """
        if token is not None:
            token.raise_if_aborted()

        request = WorkerRequest(call_id=next(self._ids), method=method, args=args)
        loop = asyncio.get_running_loop()
        stop = self._monitor.start_measurement(f"worker.{method}") if self._monitor else None

        try:
            try:
                future = loop.run_in_executor(self._ensure_executor(), handle, request)
            except RuntimeError as e:
                # submit() on a pool that is shut down or broken
                raise self._crashed(e) from e
            try:
                reply: WorkerReply = await run_cancellable(future, token)
            except BrokenExecutor as e:
                raise self._crashed(e) from e
        finally:
            if stop is not None:
                stop()

        if reply.call_id != request.call_id:
            raise WorkerError(
                f"Mismatched worker reply {reply.call_id} for call {request.call_id}",
                code="EXTRACTION_ERROR",
            )
        if not reply.ok:
            raise WorkerError(reply.error_message, code=reply.error_code or "EXTRACTION_ERROR")
        return reply.result

    # --- Typed stubs ---

    async def extract_skills(
        self, text: str, token: CancellationToken | None = None
    ) -> list[str]:
        return await self.call(EXTRACT_SKILLS, text, token=token)

    async def extract_keywords(
        self, text: str, token: CancellationToken | None = None
    ) -> list[str]:
        return await self.call(EXTRACT_KEYWORDS, text, token=token)

    async def parse_profile_data(
        self, raw: dict[str, Any], token: CancellationToken | None = None
    ) -> NormalizedProfile:
        return await self.call(PARSE_PROFILE_DATA, raw, token=token)

    async def generate_initial_suggestions(
        self, profile: NormalizedProfile, token: CancellationToken | None = None
    ) -> list[ProfileSuggestion]:
        return await self.call(GENERATE_INITIAL_SUGGESTIONS, profile, token=token)

    def shutdown(self, wait: bool = True) -> None:
        """Release the pool. A later call starts a fresh one."""
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)
            logger.info("Worker stopped")
