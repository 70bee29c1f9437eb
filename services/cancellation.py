"""Explicit cancellation tokens for backend calls."""

import asyncio
import inspect
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class OperationCancelled(Exception):
    """Raised when a call is aborted through its cancellation token."""


class CancellationToken:
    """
    Cancellation signal owned by the caller of a backend request.

    cancel() is idempotent and also aborts the task started by run(),
    if one is still pending.
    """

    def __init__(self):
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Signal cancellation. A no-op when already cancelled or finished."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await a backend call under this token.

        Raises:
            OperationCancelled: If the token was cancelled before or during the call
        """
        if self._cancelled:
            # Never started, so close it instead of leaving it unawaited
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled()
        self._task = asyncio.ensure_future(awaitable)
        try:
            return await self._task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._cancelled and not (current is not None and current.cancelling()):
                raise OperationCancelled() from None
            # The awaiting task itself is being cancelled
            raise
        finally:
            self._task = None
