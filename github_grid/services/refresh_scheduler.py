import asyncio
import logging
from collections.abc import Awaitable
from collections.abc import Callable

from github_grid.core.events import Signal


logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[object]]


class RefreshScheduler:
    """Periodically emits `refresh_requested`; never fetches anything itself.

    The timer runs as a task on the event loop that called `start`. `sleep`
    can be replaced to drive time manually.
    """

    def __init__(self, sleep: SleepFunc = asyncio.sleep) -> None:
        self.refresh_requested = Signal("refresh_requested")
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None
        self._disposed = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_minutes: float) -> None:
        """Start emitting every interval_minutes, replacing any running timer."""

        if self._disposed:
            raise RuntimeError("RefreshScheduler has been disposed")
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        self.stop()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(interval_minutes * 60))
        logger.info("Auto-refresh scheduled every %g minutes", interval_minutes)

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.stop()
        self.refresh_requested.disconnect_all()

    async def _run(self, interval_seconds: float) -> None:
        while True:
            await self._sleep(interval_seconds)
            # stop() or dispose() may have run between the sleep finishing and
            # this task resuming.
            if self._disposed or self._task is not asyncio.current_task():
                return
            self.refresh_requested.emit()
