"""Due-today evaluation for standalone tasks."""

import logging

from habitflow.core.dates import day_of_week, months_between, weeks_between
from habitflow.domain.task import RecurrenceType, StandaloneTask


logger = logging.getLogger(__name__)


def _on_listed_day(days: list[int] | None, today_iso: str) -> bool:
    if days:
        return day_of_week(today_iso) in days
    return True


def is_standalone_due(task: StandaloneTask, today_iso: str) -> bool:
    """Check whether a standalone task should be shown as due today.

    Args:
        task: Standalone task to evaluate
        today_iso: Local date to evaluate against

    Returns:
        True if the recurrence makes the task due; unknown recurrence tags are never due
    """
    recurrence = task.recurrence
    interval = max(1, recurrence.interval or 1)
    last_done = max(task.completed_dates) if task.completed_dates else None

    match recurrence.kind:
        case RecurrenceType.ONCE:
            return not task.completed
        case RecurrenceType.DAILY | RecurrenceType.CUSTOM:
            return _on_listed_day(recurrence.days_of_week, today_iso)
        case RecurrenceType.WEEKLY:
            return last_done is None or weeks_between(last_done, today_iso) >= interval
        case RecurrenceType.MONTHLY:
            return last_done is None or months_between(last_done, today_iso) >= interval
        case _:
            logger.debug("Unknown recurrence, not due", extra={"task_id": task.id, "recurrence": recurrence.type})
            return False
