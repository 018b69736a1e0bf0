# catalog_mirror/services/scheduler.py
"""
Once-a-day timer.

Lives outside SyncEngine: the app wires its callback to "queue a full crawl".
"""
from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[None, Awaitable[None]]]


def next_run_after(now: datetime, hour: int, minute: int = 0) -> datetime:
    """First HH:MM strictly after `now` (same timezone as `now`)."""
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class DailyScheduler:
    def __init__(
        self,
        callback: Callback,
        *,
        hour: int = 3,
        minute: int = 0,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.callback = callback
        self.hour = hour
        self.minute = minute
        self._clock = clock
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._loop(), name="daily-sync")
            logger.info("Daily sync scheduled at %02d:%02d", self.hour, self.minute)

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

    async def _loop(self) -> None:
        while True:
            now = self._clock()
            due = next_run_after(now, self.hour, self.minute)
            await self._sleep((due - now).total_seconds())
            await self.fire()

    async def fire(self) -> None:
        logger.info("[cron] starting daily sync")
        try:
            result = self.callback()
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception("[cron] daily sync trigger failed")
