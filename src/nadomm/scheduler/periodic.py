"""Cooperative periodic task runner."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Run an async callback on a period without ever overlapping itself.

    The next invocation is armed only after the previous one has returned,
    so a slow exchange call delays the schedule instead of stacking ticks.
    `interval` may be a callable, read before every sleep, which lets the
    quoting loop back off adaptively.
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[], Awaitable[object]],
        interval: float | Callable[[], float],
        run_immediately: bool = True,
    ):
        self.name = name
        self.callback = callback
        self._interval = interval
        self.run_immediately = run_immediately
        self.runs = 0
        self._running = False
        self._task: asyncio.Task | None = None
        self._wakeup = asyncio.Event()

    @property
    def interval(self) -> float:
        if callable(self._interval):
            return self._interval()
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> None:
        """Loop until stopped. Exceptions from the callback are logged, not raised."""
        self._running = True
        logger.debug(f"{self.name}: started")

        if not self.run_immediately:
            await self._sleep()

        while self._running:
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"{self.name}: error in periodic task: {e}", exc_info=True)
            self.runs += 1

            if not self._running:
                break
            await self._sleep()

        logger.debug(f"{self.name}: stopped")

    async def _sleep(self) -> None:
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop."""
        if self.is_running:
            return self._task
        self._task = asyncio.create_task(self.run(), name=self.name)
        return self._task

    async def stop(self) -> None:
        """Stop after the in-flight invocation (if any) completes."""
        self._running = False
        self._wakeup.set()
        if self._task:
            await self._task
            self._task = None
