"""
Timer abstraction driving engine cycles.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol

from loguru import logger

Callback = Callable[[], Awaitable[object]]


class TimerHandle(Protocol):
    """A cancellable recurring timer."""

    interval: float

    def cancel(self) -> None: ...

    @property
    def active(self) -> bool: ...


class Scheduler(Protocol):
    """Arms recurring timers and one-shot callbacks."""

    def call_every(self, interval: float, callback: Callback) -> TimerHandle: ...

    def call_soon(self, callback: Callback) -> None: ...


class AsyncioTimer:
    """Fixed-rate timer backed by an asyncio task."""

    def __init__(self, scheduler: "AsyncioScheduler", interval: float, callback: Callback):
        self.interval = interval
        self._scheduler = scheduler
        self._callback = callback
        self._task: Optional[asyncio.Task] = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_fire - loop.time()))
            next_fire += self.interval
            # Fire without awaiting so a slow callback never delays the schedule
            self._scheduler.call_soon(self._callback)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()


class AsyncioScheduler:
    """
    Scheduler running callbacks as tasks on the current event loop.

    Must be used from inside a running loop.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def call_every(self, interval: float, callback: Callback) -> AsyncioTimer:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return AsyncioTimer(self, interval, callback)

    def call_soon(self, callback: Callback) -> None:
        task = asyncio.get_running_loop().create_task(callback())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error("Scheduled callback failed")

    async def shutdown(self) -> None:
        """Wait for callbacks still in flight."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
