# src/pipeline/dedup.py — v2
"""In-flight request deduplication.

At most one computation runs per fingerprint. Callers that arrive while it
is running join it instead of starting a second one. Each caller waits
under its own cancellation token; the shared computation runs under an
internal token that is aborted only once every waiter has left.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from careerlens.core.cancellation import CancellationToken, run_cancellable

logger = logging.getLogger(__name__)

T = TypeVar("T")

ABANDONED_REASON = "All callers cancelled the analysis"


@dataclass
class _PendingEntry:
    task: asyncio.Task[Any]
    token: CancellationToken
    waiters: int = 0


class PendingRequestTable(Generic[T]):
    """Fingerprint -> shared in-flight computation."""

    def __init__(self) -> None:
        self._entries: dict[str, _PendingEntry] = {}
        self._joins = 0

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def joins(self) -> int:
        """Number of calls that joined an existing computation."""
        return self._joins

    async def run(
        self,
        fingerprint: str,
        factory: Callable[[CancellationToken], Awaitable[T]],
        token: CancellationToken | None = None,
    ) -> T:
        """Await the computation for ``fingerprint``, starting it if needed.

        Args:
            fingerprint: Identity of the request.
            factory: Builds the computation; receives the internal token to
                thread through its suspension points.
            token: The caller's token. Aborting it releases this caller only.

        Raises:
            AnalysisCancelledError: ``token`` was aborted before the result.
            Exception: Whatever the shared computation raised.
        """
        if token is not None:
            token.raise_if_aborted()

        entry = self._entries.get(fingerprint)
        if entry is None:
            entry = self._start(fingerprint, factory)
        else:
            self._joins += 1
            logger.debug("Joining in-flight computation %s", fingerprint[:12])

        entry.waiters += 1
        try:
            return await run_cancellable(asyncio.shield(entry.task), token)
        finally:
            entry.waiters -= 1
            if entry.waiters == 0 and not entry.task.done():
                self._abandon(fingerprint, entry)

    def _start(
        self,
        fingerprint: str,
        factory: Callable[[CancellationToken], Awaitable[T]],
    ) -> _PendingEntry:
        internal = CancellationToken()
        task = asyncio.ensure_future(factory(internal))
        entry = _PendingEntry(task=task, token=internal)
        self._entries[fingerprint] = entry
        task.add_done_callback(lambda t: self._settled(fingerprint, entry, t))
        return entry

    def _settled(
        self, fingerprint: str, entry: _PendingEntry, task: asyncio.Task[Any]
    ) -> None:
        if self._entries.get(fingerprint) is entry:
            del self._entries[fingerprint]
        # Mark the outcome retrieved: abandoned computations have no reader.
        if not task.cancelled():
            task.exception()

    def _abandon(self, fingerprint: str, entry: _PendingEntry) -> None:
        if self._entries.get(fingerprint) is entry:
            del self._entries[fingerprint]
        logger.info("Aborting abandoned computation %s", fingerprint[:12])
        entry.token.abort(ABANDONED_REASON)

    def cancel_all(self) -> int:
        """Abort every in-flight computation. Returns how many were aborted."""
        entries, self._entries = list(self._entries.values()), {}
        for entry in entries:
            entry.token.abort(ABANDONED_REASON)
        return len(entries)
