"""Cooperative cancellation for a single generation turn."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Optional, TypeVar

from .exceptions import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Signals that a turn should stop, either on request or at a deadline.

    The token is checked at every suspension point of a turn: each request
    to the inference endpoint and each tool invocation is raced against it
    with :meth:`run`, so cancelling interrupts the wait instead of letting
    it run to completion.

    Parameters
    ----------
    timeout:
        Optional number of seconds after which the token counts as cancelled.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._deadline: Optional[float] = (
            time.monotonic() + timeout if timeout is not None else None
        )

    def cancel(self, reason: str = "Request was cancelled.") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()
            logger.info("Cancellation requested: %s", reason)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self._deadline_passed()

    @property
    def reason(self) -> Optional[str]:
        if self._event.is_set():
            return self._reason
        if self._deadline_passed():
            return "Deadline exceeded."
        return None

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or ``None`` when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError(self.reason or "Request was cancelled.")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the token fires first.

        When the token fires, the underlying task is cancelled, given the
        chance to unwind, and :class:`OperationCancelledError` is raised.
        """
        if self.cancelled and asyncio.iscoroutine(awaitable):
            awaitable.close()
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _pending = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            # Also reached when the caller itself is cancelled mid-wait
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if task in done:
            return task.result()

        reason = self.reason or "Deadline exceeded."
        raise OperationCancelledError(reason)


async def run_with_token(
    awaitable: Awaitable[T], token: Optional[CancellationToken]
) -> T:
    """Await *awaitable*, racing it against *token* when one is given."""
    if token is None:
        return await awaitable
    return await token.run(awaitable)
