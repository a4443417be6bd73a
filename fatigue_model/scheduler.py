"""
Clocks and repeating tasks.

Everything time-related goes through a ``Clock`` so the engine and its tick
driver can run against virtual time in tests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol, runtime_checkable

logger = logging.getLogger("unplug.scheduler")


@runtime_checkable
class Clock(Protocol):
    """Source of wall-clock seconds and of the matching sleep primitive."""

    def now(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Real time: ``time.time()`` and ``asyncio.sleep``."""

    def now(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ManualClock:
    """
    Virtual time for tests and simulations.

    ``sleep`` advances the clock by the requested amount and yields to the
    event loop once, so a repeating task runs as fast as the loop allows.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        self._now += seconds
        return self._now

    def set(self, timestamp: float) -> None:
        self._now = float(timestamp)

    async def sleep(self, seconds: float) -> None:
        self._now += seconds
        await asyncio.sleep(0)


class RepeatingTask:
    """
    Cancellable fixed-interval task on the running event loop.

    The callback runs on the loop thread, serialized with anything else the
    loop executes. Exceptions are logged and the task keeps going.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        clock: Optional[Clock] = None,
        name: str = "repeating-task",
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.interval = interval
        self.name = name
        self._callback = callback
        self._clock = clock or SystemClock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug(f"{self.name} started (every {self.interval:.2f}s)")

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug(f"{self.name} cancelled")

    async def _run(self) -> None:
        while True:
            await self._clock.sleep(self.interval)
            try:
                self._callback()
            except Exception:
                logger.exception(f"{self.name} callback failed")
