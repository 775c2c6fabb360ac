"""Task repository transforms and per-task toggle rules.

The repository works on immutable task lists: each operation returns a new
list and leaves the input untouched.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from habitflow.core.dates import day_of_week, to_iso_timestamp
from habitflow.domain.task import BaseTask, HabitTask, StandaloneTask, Task
from habitflow.services.standalone_service import is_standalone_due


logger = logging.getLogger(__name__)


def get_tasks_by_goal(all_tasks: Sequence[Task], goal_id: str) -> list[Task]:
    """Return the tasks attached to a goal."""
    return [task for task in all_tasks if getattr(task, "goal_id", None) == goal_id]


def add_task(all_tasks: Sequence[Task], task: Task) -> list[Task]:
    """Append a task."""
    return [*all_tasks, task]


def bulk_add(all_tasks: Sequence[Task], new_tasks: Sequence[Task]) -> list[Task]:
    """Append several tasks at once (e.g. one habit task per planned weekday)."""
    return [*all_tasks, *new_tasks]


def update_task(all_tasks: Sequence[Task], task: Task) -> list[Task]:
    """Replace the task with the same id. Unknown ids leave the list unchanged."""
    if not any(existing.id == task.id for existing in all_tasks):
        logger.debug("update_task: task not found", extra={"task_id": task.id})
    return [task if existing.id == task.id else existing for existing in all_tasks]


def delete_task(all_tasks: Sequence[Task], task_id: str) -> list[Task]:
    """Remove a task by id. Unknown ids leave the list unchanged."""
    return [task for task in all_tasks if task.id != task_id]


def tasks_for_today(all_tasks: Sequence[Task], today_iso: str) -> list[Task]:
    """Habit tasks planned for today's weekday plus standalone tasks that are due."""
    weekday = day_of_week(today_iso)
    result: list[Task] = []
    for task in all_tasks:
        if isinstance(task, HabitTask) and task.day_of_week == weekday:
            result.append(task)
        elif isinstance(task, StandaloneTask) and is_standalone_due(task, today_iso):
            result.append(task)
    return result


def is_done_on(task: Task, date_iso: str) -> bool:
    return date_iso in getattr(task, "completed_dates", [])


def toggle_done_on(task: BaseTask, date_iso: str, now: datetime | None = None) -> BaseTask:
    """Mark or unmark a task as done on a given date."""
    if is_done_on(task, date_iso):
        completed_dates = [d for d in task.completed_dates if d != date_iso]
    else:
        completed_dates = [*task.completed_dates, date_iso]
    return task.model_copy(update={"completed_dates": completed_dates, "updated_at": to_iso_timestamp(now)})


def toggle_standalone_done(task: BaseTask, date_iso: str, now: datetime | None = None) -> BaseTask:
    """Mark or unmark a standalone task for a date.

    With subtasks, ``completed`` mirrors whether all of them are done.
    """
    toggled = toggle_done_on(task, date_iso, now)
    if not toggled.subtasks:
        return toggled
    return toggled.model_copy(update={"completed": all(subtask.completed for subtask in toggled.subtasks)})


def toggle_project_task(task: BaseTask, now: datetime | None = None) -> BaseTask:
    """Flip a task's completion and apply it to every subtask."""
    target = not task.completed
    subtasks = [subtask.model_copy(update={"completed": target}) for subtask in task.subtasks]
    return task.model_copy(update={"completed": target, "subtasks": subtasks, "updated_at": to_iso_timestamp(now)})


def toggle_subtask(task: BaseTask, subtask_id: str, now: datetime | None = None) -> BaseTask:
    """Flip one subtask; the task is completed exactly when all of its subtasks are."""
    subtasks = [
        subtask.model_copy(update={"completed": not subtask.completed}) if subtask.id == subtask_id else subtask
        for subtask in task.subtasks
    ]
    completed = all(subtask.completed for subtask in subtasks) if subtasks else task.completed
    return task.model_copy(update={"subtasks": subtasks, "completed": completed, "updated_at": to_iso_timestamp(now)})
