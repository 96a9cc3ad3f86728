"""Periodic tick sources that drive running timers."""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class TickSource(ABC):
    """Drives a running timer once per interval."""

    @abstractmethod
    def schedule(self, callback: TickCallback) -> Any:
        """Start calling ``callback`` once per interval. Returns a handle for cancel()."""
        ...

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Stop the schedule. The callback must not fire after this returns."""
        ...


class TickHandle:
    __slots__ = ("task", "cancelled")

    def __init__(self):
        self.task: asyncio.Task | None = None
        self.cancelled = False


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class AsyncioTickSource(TickSource):
    """Fixed-interval ticks on the running event loop, one task per schedule.

    Missed intervals (event loop blocked, process suspended) are dropped rather
    than replayed: the next tick is one interval after the late one. A callback
    that raises is logged and the schedule keeps running until cancelled.
    """

    def __init__(self, interval: float = 1.0):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.interval = interval

    def schedule(self, callback: TickCallback) -> TickHandle:
        handle = TickHandle()
        handle.task = asyncio.get_running_loop().create_task(self._run(handle, callback))
        return handle

    def cancel(self, handle: TickHandle) -> None:
        if handle.cancelled:
            return
        handle.cancelled = True
        # Cancelled from inside its own callback (e.g. a timer completing on a
        # tick): the flag ends the loop once the callback returns, and the
        # callback's own awaits are left alone.
        if handle.task is not None and handle.task is not _current_task():
            handle.task.cancel()

    async def _run(self, handle: TickHandle, callback: TickCallback) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval
        while not handle.cancelled:
            await asyncio.sleep(max(next_at - loop.time(), 0))
            if handle.cancelled:
                break
            try:
                await callback()
            except Exception:
                # Only the owner ends a schedule, through cancel()
                logger.exception("Tick callback failed")
            now = loop.time()
            next_at += self.interval
            if next_at <= now:
                next_at = now + self.interval
