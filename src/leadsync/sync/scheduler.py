"""Cancellable periodic trigger for unattended sync."""

import asyncio
import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class PeriodicSyncTimer:
    """Calls ``callback`` every ``interval`` seconds on the running event loop.

    The timer only triggers; it never waits for the work it starts, so
    stopping or restarting it has no effect on a pass already in flight.
    """

    def __init__(self, callback: Callable[[], None], interval: float):
        self.callback = callback
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start ticking; restarts the countdown if already running."""
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Sync timer started: every {self.interval:g}s")

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Sync timer stopped")

    def restart(self, interval: Optional[float] = None):
        if interval is not None:
            self.interval = interval
        self.start()

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Scheduled sync trigger failed: {e}")
