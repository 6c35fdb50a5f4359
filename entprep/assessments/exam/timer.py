"""
Countdown Timer

Cooperative asyncio task that calls a tick callback at a fixed interval until
stopped. The callback runs on the event loop, never concurrently with other
session operations.
"""

import asyncio
from typing import Callable, Optional

from entprep.common.logger import app_logger

logger = app_logger.getChild("exam.timer")


class CountdownTimer:
    """Periodic tick driver for an exam session."""

    def __init__(self, on_tick: Callable[[], object], interval_seconds: float = 1.0):
        """
        Initialize the timer.

        Args:
            on_tick: Called once per interval
            interval_seconds: Seconds between ticks
        """
        if interval_seconds <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval_seconds}")
        self.on_tick = on_tick
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopped

    def start(self) -> None:
        """Start ticking; must be called from a running event loop."""
        if self.running:
            return
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.interval_seconds)
            if self._stopped:
                break
            self.on_tick()

    def stop(self) -> None:
        """
        Stop ticking.

        Safe to call from inside the tick callback, in which case the loop
        ends after the callback returns.
        """
        self._stopped = True
        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    async def wait_closed(self) -> None:
        """Wait for the tick task to finish after stop()."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            logger.debug("Countdown task cancelled")
