# src/core/cancellation.py — v2
"""Cooperative cancellation tokens.

A CancellationToken is created by the caller (CLI, UI adapter, test) and
threaded through every suspension point: HTTP calls, worker RPC awaits and
backoff sleeps. Aborting it cancels whatever is currently awaited through
run_cancellable() within the same event-loop turn.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from careerlens.core.errors import AnalysisCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_REASON = "Analysis cancelled by user"


class CancellationToken:
    """Caller-controlled abort flag with synchronous callbacks."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: str | None = None
        self._callbacks: list[Callable[[], Any]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> str | None:
        return self._reason

    def abort(self, reason: str = DEFAULT_REASON) -> None:
        """Trigger cancellation. Idempotent; later calls keep the first reason."""
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback failed")

    def add_callback(self, callback: Callable[[], Any]) -> Callable[[], None]:
        """Register a callback run on abort. Returns an unregister function.

        If the token is already aborted the callback runs immediately.
        """
        if self._aborted:
            callback()
            return _noop

        self._callbacks.append(callback)

        def remove() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return remove

    def raise_if_aborted(self) -> None:
        if self._aborted:
            raise AnalysisCancelledError(self._reason or DEFAULT_REASON)

    async def wait(self) -> None:
        """Suspend until the token is aborted."""
        if self._aborted:
            return
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def _wake() -> None:
            if not future.done():
                future.set_result(None)

        remove = self.add_callback(_wake)
        try:
            await future
        finally:
            remove()

    def __repr__(self) -> str:
        state = f"aborted={self._reason!r}" if self._aborted else "active"
        return f"<CancellationToken {state}>"


def _noop() -> None:
    return None


async def run_cancellable(
    awaitable: Awaitable[T], token: CancellationToken | None = None
) -> T:
    """Await ``awaitable`` and abort it as soon as ``token`` is triggered.

    Raises:
        AnalysisCancelledError: If the token was (or becomes) aborted before
            the awaitable settles. A result that is already available wins.
    """
    if token is None:
        return await awaitable

    if token.aborted:
        # Close a never-started coroutine so it does not warn.
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_aborted()

    task = asyncio.ensure_future(awaitable)
    remove = token.add_callback(task.cancel)
    try:
        return await task
    except asyncio.CancelledError:
        if token.aborted and task.cancelled():
            raise AnalysisCancelledError(
                token.reason or DEFAULT_REASON
            ) from None
        raise
    finally:
        remove()
