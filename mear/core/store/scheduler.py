"""
Timer Scheduling

The store never schedules on the event loop itself.  It asks a Scheduler for delayed
callbacks (monitoring reminders, alert auto-dismiss, debounced saves) and
for background coroutines (the save itself).  Every delayed callback
returns a handle that the store keeps and cancels when the timer stops.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Set

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable handle for one delayed callback."""

    def cancel(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @property
    def cancelled(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


class Scheduler:
    """Interface the store schedules against."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        raise NotImplementedError

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> Any:
        raise NotImplementedError


class _AsyncioHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class _InertHandle(TimerHandle):
    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by the running asyncio event loop.

    Spawned tasks are referenced until they finish so they are not garbage
    collected mid-flight.  Outside a running loop nothing can be scheduled;
    the call is logged and an inert handle returned.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; dropped timer for {getattr(callback, '__name__', callback)}")
            return _InertHandle()
        return _AsyncioHandle(loop.call_later(max(0.0, delay), callback, *args))

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> Any:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; background coroutine discarded")
            coro.close()
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every spawned coroutine (used on shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
