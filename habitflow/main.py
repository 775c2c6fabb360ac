"""habitflow - personal goal, habit and task tracker."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from habitflow.core.config import constants
from habitflow.core.db_client import close_connection, init_db
from habitflow.core.errors import PersistenceError, classify_error_with_response
from habitflow.core.logging import configure_logfire
from habitflow.core.scheduler import DayChangeWatcher, start_scheduler, stop_scheduler
from habitflow.core.scheduler_tracker import job_tracker
from habitflow.services.tracker_service import Tracker


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan() -> AsyncIterator[Tracker]:
    """Run a tracker session for a host application.

    Yields the loaded tracker with its goals already rolled forward to today
    and the day-change job running.
    """
    # Startup
    configure_logfire()

    await init_db()
    logger.info("Database initialized")

    tracker = await Tracker.load()
    try:
        await tracker.run_day_change()
    except PersistenceError as e:
        # Rolled-over state is kept in memory and saved by the next successful write.
        response = classify_error_with_response(e)
        logger.warning(
            "Initial rollover not saved",
            extra={"key": e.key, "code": response.code, "severity": response.severity.value, "error": str(e)},
        )

    start_scheduler(DayChangeWatcher(tracker))
    try:
        yield tracker
    finally:
        # Shutdown
        stop_scheduler()
        await close_connection()


def scheduler_health() -> dict[str, Any]:
    """Status of the day-change job and the dead letter queue."""
    status = job_tracker.get_job_status(constants.DAY_CHANGE_JOB_ID)
    dlq = job_tracker.get_dead_letter_queue()

    overall_status = "degraded" if status["consecutive_failures"] > 0 else "healthy"
    if dlq:
        overall_status = "critical"

    return {
        "status": overall_status,
        "jobs": {constants.DAY_CHANGE_JOB_ID: status},
        "dead_letter_queue_size": len(dlq),
        "dead_letter_queue": dlq,
    }
