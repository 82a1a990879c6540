"""Fixed-period refresh timer."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RefreshScheduler:
    """Runs ``job`` every ``interval`` seconds until stopped.

    Ticks start ``interval`` seconds apart: the time a job takes comes out of
    the following wait. The period is independent of whether the job
    succeeded; a failing job is logged and the next tick still happens.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[object]],
        interval: float,
        *,
        sleep: Sleep = asyncio.sleep,
        run_immediately: bool = False,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        self._job = job
        self._interval = interval
        self._sleep = sleep
        self._run_immediately = run_immediately
        self._monotonic = monotonic
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> None:
        self.ticks += 1
        try:
            await self._job()
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001 - the timer keeps going
            logger.exception("Scheduled refresh failed")

    async def _timed_tick(self, now: Callable[[], float]) -> float:
        """Tick, then return how long to wait before the next one."""

        started = now()
        await self.tick()
        return max(0.0, self._interval - (now() - started))

    async def _run(self) -> None:
        now = self._monotonic or asyncio.get_running_loop().time
        delay = await self._timed_tick(now) if self._run_immediately else self._interval
        while True:
            await self._sleep(delay)
            delay = await self._timed_tick(now)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="portfolio-refresh")
        logger.info("Refresh scheduler started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Refresh scheduler stopped after %d tick(s)", self.ticks)


__all__ = ["RefreshScheduler"]
