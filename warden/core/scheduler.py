"""
Recurring background routine runner.

Runs a coroutine on a fixed interval for the life of the application. Runs
never overlap: the loop is sequential and every run holds a lock, so a run
started by hand waits for the scheduled one (and vice versa).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class RecurringTask:
    """
    Periodically await ``routine`` on an asyncio task.

    Failures are logged and never stop the loop or reach the host process;
    the next tick simply tries again.

    Example:
        task = RecurringTask("bootstrap", service.run, interval_seconds=300)
        await task.run_once()
        task.start()
        ...
        await task.stop()
    """

    def __init__(
        self,
        name: str,
        routine: Callable[[], Awaitable[Any]],
        interval_seconds: float,
    ):
        self.name = name
        self.routine = routine
        self.interval_seconds = interval_seconds
        self._lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """
        Run the routine once, waiting for any run already in progress.

        Returns:
            True if the routine completed, False if it raised
        """
        async with self._lock:
            try:
                await self.routine()
            except Exception as e:
                logger.error(f"Error in {self.name} routine: {e}", exc_info=True)
                return False
        return True

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()

    def start(self) -> None:
        """Start the loop; the first run happens one interval from now."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=f"{self.name}-scheduler")
        logger.info(f"{self.name} scheduled every {self.interval_seconds}s")

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"{self.name} scheduler stopped")
