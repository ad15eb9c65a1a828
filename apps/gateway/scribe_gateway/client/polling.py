"""Fixed-interval refresh scheduling for the job status store."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import suppress
import logging

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


class PollingScheduler:
    """Runs ``refresh`` every ``interval`` seconds, the first time right on start.

    Refreshes never overlap. A tick that arrives while one is running is
    folded into a single pending refresh that runs right after it. A failed
    refresh is logged and the next tick tries again; whatever the refresh
    writes to is left untouched.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[None]],
        *,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._refresh = refresh
        self.interval = interval
        self._task: asyncio.Task[None] | None = None
        self._in_flight = False
        self._pending = False
        self.completed_refreshes = 0
        self.failed_refreshes = 0
        self.coalesced_ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def start(self, *, immediate: bool = True) -> None:
        """Begin polling; with ``immediate=False`` the first refresh waits one interval."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(immediate), name="job-status-poll")

    async def stop(self) -> None:
        task, self._task = self._task, None
        self._pending = False
        if task is None or task.done():
            return
        task.cancel()
        if task is asyncio.current_task():
            # Stopped from inside a refresh; cancellation lands at its next await.
            return
        with suppress(asyncio.CancelledError):
            await task

    async def _run(self, immediate: bool) -> None:
        if not immediate:
            await asyncio.sleep(self.interval)
        while True:
            await self.tick()
            await asyncio.sleep(self.interval)

    async def tick(self) -> bool:
        """Refresh now unless one is running; returns whether this call refreshed."""
        if self._in_flight:
            self._pending = True
            self.coalesced_ticks += 1
            logger.debug("poll.skipped reason=in_flight pending=true")
            return False

        self._in_flight = True
        try:
            await self._refresh_once()
            while self._pending:
                self._pending = False
                await self._refresh_once()
        finally:
            self._in_flight = False
        return True

    async def _refresh_once(self) -> None:
        try:
            await self._refresh()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.failed_refreshes += 1
            logger.warning("poll.failed reason=%s message=%s", type(exc).__name__, exc)
            return
        self.completed_refreshes += 1
        logger.debug("poll.refreshed count=%s", self.completed_refreshes)
