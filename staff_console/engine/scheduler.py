"""
Periodic callbacks for the console (snapshot refresh, clock tick,
notification polling), each on its own asyncio task.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs an async callback every ``interval`` seconds until stopped."""

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[object]],
        run_immediately: bool = False,
    ):
        self.name = name
        self.interval = interval
        self.callback = callback
        self.run_immediately = run_immediately
        self.running = False
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.debug(f"Periodic task '{self.name}' started ({self.interval}s)")

    async def stop(self) -> None:
        self.running = False
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.debug(f"Periodic task '{self.name}' stopped")

    async def _loop(self) -> None:
        if not self.run_immediately:
            await asyncio.sleep(self.interval)
        while self.running:
            try:
                await self.callback()
            except Exception as e:
                logger.error(f"Periodic task '{self.name}' failed: {e}")
            await asyncio.sleep(self.interval)


class Scheduler:
    """Group of periodic tasks started and stopped together."""

    def __init__(self):
        self.tasks: list[PeriodicTask] = []

    def add(self, task: PeriodicTask) -> PeriodicTask:
        self.tasks.append(task)
        return task

    @property
    def running(self) -> bool:
        return any(task.running for task in self.tasks)

    def start(self) -> None:
        for task in self.tasks:
            task.start()
        logger.info(f"Scheduler started: {[t.name for t in self.tasks]}")

    async def stop(self) -> None:
        await asyncio.gather(*(task.stop() for task in self.tasks))
        logger.info("Scheduler stopped")
