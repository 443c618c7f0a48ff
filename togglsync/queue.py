"""
FIFO single-flight executor for Toggl requests.

Operations queued here run one at a time in submission order, so the remote
service never sees overlapping requests from the lane. There is no retry,
backoff or priority. An operation that is cancelled or raises
something outside Exception settles only its own caller.
"""
from __future__ import annotations
import asyncio
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Optional, Tuple, TypeVar

from togglsync.observability.metrics import queued_operations_total

T = TypeVar("T")
Operation = Callable[[], Awaitable[Any]]


class ApiQueue:
    """Append with ``queue()``; a single drain task runs entries in order."""

    def __init__(self):
        self._pending: Deque[Tuple[Operation, asyncio.Future]] = deque()
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        """Operations admitted but not yet started."""
        return len(self._pending)

    async def queue(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``operation`` after everything queued before it has settled.
        Resolves or raises with exactly what the operation does.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._pending.append((operation, future))
        queued_operations_total.inc()

        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())

        return await future

    async def _drain(self) -> None:
        while self._pending:
            operation, future = self._pending.popleft()
            if future.cancelled():
                continue
            try:
                result = await operation()
            except asyncio.CancelledError:
                # Only this caller is cancelled; later entries still run
                future.cancel()
                continue
            except BaseException as e:
                if not future.cancelled():
                    future.set_exception(e)
                if isinstance(e, (KeyboardInterrupt, SystemExit)):
                    while self._pending:
                        self._pending.popleft()[1].cancel()
                    raise
                continue
            if not future.cancelled():
                future.set_result(result)
