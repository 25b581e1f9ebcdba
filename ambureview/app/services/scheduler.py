"""
Background scheduler for the job runner.

Two asyncio tasks started from the application lifespan: the daily pass
at DAILY_JOB_HOUR:DAILY_JOB_MINUTE UTC and the hourly pass every
HOURLY_JOB_INTERVAL_SECONDS. Ticks run sequentially inside each task, so a
pass never overlaps its own next tick.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from ambureview.app.core.config import settings
from ambureview.app.services.job_runner import JobRunner

logger = logging.getLogger(__name__)


def seconds_until(hour: int, minute: int, now: Optional[datetime] = None) -> float:
    """Seconds from `now` (UTC) to the next occurrence of hour:minute."""
    now = now or datetime.utcnow()
    next_run = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if next_run <= now:
        next_run += timedelta(days=1)
    return (next_run - now).total_seconds()


class JobScheduler:

    def __init__(self, runner: JobRunner):
        self.runner = runner
        self._stop = asyncio.Event()
        self._tasks: List[asyncio.Task] = []

    def start(self):
        if self._tasks:
            return
        self._stop.clear()
        self._tasks = [
            asyncio.create_task(self._daily_loop(), name="daily-pass"),
            asyncio.create_task(self._hourly_loop(), name="hourly-pass"),
        ]
        logger.info(
            "Scheduler started (daily at %02d:%02d UTC, hourly every %ds)",
            settings.daily_job_hour, settings.daily_job_minute, settings.hourly_job_interval_seconds
        )

    async def stop(self):
        self._stop.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Scheduler stopped")

    async def _sleep(self, seconds: float) -> bool:
        """Sleep unless stopped first. Returns False once stop was requested."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
            return False
        except asyncio.TimeoutError:
            return True

    async def _daily_loop(self):
        while not self._stop.is_set():
            delay = seconds_until(settings.daily_job_hour, settings.daily_job_minute)
            if not await self._sleep(delay):
                break
            await self.runner.handle_daily_pass()

    async def _hourly_loop(self):
        while not self._stop.is_set():
            if not await self._sleep(settings.hourly_job_interval_seconds):
                break
            await self.runner.handle_hourly_pass()
