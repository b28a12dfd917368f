"""Background timer that re-broadcasts the active-session snapshot."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from gym_checkin.services.tracker import SessionTracker

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0


@dataclass
class PeriodicBroadcaster:
    """Calls SessionTracker.broadcast_active_sessions on a fixed interval.

    A failing tick is logged and the next tick runs as usual.
    """

    tracker: SessionTracker
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer on the running event loop; disabled when interval <= 0."""
        if self.running or self.interval_seconds <= 0:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def tick(self) -> bool:
        """Run one broadcast; return False when it failed."""
        try:
            await self.tracker.broadcast_active_sessions()
        except Exception:
            logger.exception("Error broadcasting active sessions")
            return False
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.tick()
