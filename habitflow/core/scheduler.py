"""Scheduler for the local day-change rollover."""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from habitflow.core.config import constants, settings
from habitflow.core.dates import today_local
from habitflow.core.scheduler_tracker import retry_job_with_backoff


if TYPE_CHECKING:
    from habitflow.services.tracker_service import Tracker


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


class DayChangeWatcher:
    """Runs the tracker's day-change rollover once per new local day.

    The first tick after construction only records the current day unless
    ``last_day`` is given; the host runs the initial rollover at startup.
    """

    def __init__(
        self,
        tracker: "Tracker",
        today_provider: Callable[[], str] = today_local,
        last_day: str | None = None,
    ) -> None:
        self.tracker = tracker
        self.today_provider = today_provider
        self.last_day = last_day if last_day is not None else today_provider()

    async def tick(self) -> bool:
        """Check the local day and roll over when it changed.

        Returns:
            True if a rollover ran
        """
        today = self.today_provider()
        if today == self.last_day:
            return False

        logger.info("Local day changed", extra={"previous": self.last_day, "today": today})
        await self.tracker.run_day_change(today)
        # Advanced only after success so a failed rollover is retried on the next tick.
        self.last_day = today
        return True


def start_scheduler(watcher: DayChangeWatcher) -> None:
    """Start the scheduler and register the day-change job."""
    logger.info("Starting scheduler")

    async def _tick() -> None:
        await watcher.tick()

    async def _run_day_change_job() -> None:
        await retry_job_with_backoff(_tick, constants.DAY_CHANGE_JOB_ID)

    scheduler.add_job(
        _run_day_change_job,
        trigger=IntervalTrigger(seconds=settings.day_change_poll_seconds),
        id=constants.DAY_CHANGE_JOB_ID,
        name="Local Day Change Rollover",
        replace_existing=True,
    )
    logger.info(f"Scheduled day change job: every {settings.day_change_poll_seconds}s")

    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler."""
    logger.info("Stopping scheduler")
    scheduler.shutdown(wait=True)
    logger.info("Scheduler stopped")
