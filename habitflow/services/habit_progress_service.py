"""Pure state transition functions for habit streaks and weekly progress.

Every function takes a goal snapshot and returns a new one; nothing here
touches storage or mutates its inputs.
"""

import logging
from collections.abc import Sequence

from habitflow.core.dates import add_days, day_of_week, iter_days, same_day, same_week
from habitflow.domain.goal import HabitGoal, WeeklyProgress
from habitflow.domain.task import HabitTask, Task
from habitflow.services.task_service import is_done_on


logger = logging.getLogger(__name__)


def planned_tasks(goal_id: str, all_tasks: Sequence[Task], date_iso: str) -> list[HabitTask]:
    """Return the habit tasks of a goal planned for the weekday of ``date_iso``."""
    weekday = day_of_week(date_iso)
    return [
        task
        for task in all_tasks
        if isinstance(task, HabitTask) and task.goal_id == goal_id and task.day_of_week == weekday
    ]


def is_day_complete(goal_id: str, all_tasks: Sequence[Task], date_iso: str) -> bool:
    """Check whether every task planned for that day was marked done on that day.

    A day with nothing planned is never complete, so off days cannot
    inflate a streak.
    """
    planned = planned_tasks(goal_id, all_tasks, date_iso)
    if not planned:
        return False
    return all(is_done_on(task, date_iso) for task in planned)


def ensure_weekly_window(goal: HabitGoal, today_iso: str) -> HabitGoal:
    """Reset weekly progress when today falls in a different Monday-start week."""
    if same_week(goal.weekly_progress.updated_at, today_iso):
        return goal

    logger.debug(
        "Weekly window reset",
        extra={"goal_id": goal.id, "previous": goal.weekly_progress.updated_at, "today": today_iso},
    )
    return goal.model_copy(update={"weekly_progress": WeeklyProgress(count=0, updated_at=today_iso)})


def apply_rollover(goal: HabitGoal, all_tasks: Sequence[Task], today_iso: str) -> HabitGoal:
    """Break the streak if a planned day between the last check and today was missed.

    Walks from the day after ``last_check`` up to, but not including, today and
    stops at the first planned day that is not complete. ``last_check`` is never
    advanced here; only crediting today does that.
    """
    last_check = goal.streak.last_check
    if not last_check:
        return goal

    for cursor in iter_days(add_days(last_check, 1), add_days(today_iso, -1)):
        if not planned_tasks(goal.id, all_tasks, cursor):
            continue
        if is_day_complete(goal.id, all_tasks, cursor):
            continue

        logger.info(
            "Streak broken by missed day",
            extra={"goal_id": goal.id, "missed_day": cursor, "previous_streak": goal.streak.current},
        )
        streak = goal.streak.model_copy(update={"current": 0, "active": False})
        return goal.model_copy(update={"streak": streak})

    return goal


def register_day_if_needed(goal: HabitGoal, all_tasks: Sequence[Task], today_iso: str) -> HabitGoal:
    """Credit today to the streak and weekly counter once it is complete.

    Must run after ensure_weekly_window. Crediting is idempotent: a day that
    was already credited is left alone.
    """
    if not is_day_complete(goal.id, all_tasks, today_iso):
        return goal
    if same_day(goal.streak.last_check, today_iso):
        return goal

    current = goal.streak.current + 1
    streak_update: dict = {"current": current, "active": True, "last_check": today_iso}
    if current > goal.streak.highest:
        streak_update["highest"] = current
        streak_update["highest_at"] = today_iso

    weekly = WeeklyProgress(
        count=min(goal.weekly_progress.count + 1, max(0, goal.weekly_target)),
        updated_at=today_iso,
    )

    logger.info(
        "Habit day credited",
        extra={"goal_id": goal.id, "day": today_iso, "current": current, "weekly_count": weekly.count},
    )
    return goal.model_copy(
        update={"streak": goal.streak.model_copy(update=streak_update), "weekly_progress": weekly},
    )


def uncount_if_broken(goal: HabitGoal, all_tasks: Sequence[Task], today_iso: str) -> HabitGoal:
    """Reverse today's progress when the day is no longer complete.

    Must run after ensure_weekly_window. The weekly counter always drops by one
    (floored at zero). The streak is only rolled back when today is the day
    that was credited; a high-water mark earned on an earlier day is kept.
    """
    if is_day_complete(goal.id, all_tasks, today_iso):
        return goal

    weekly = WeeklyProgress(count=max(0, goal.weekly_progress.count - 1), updated_at=today_iso)

    if not same_day(goal.streak.last_check, today_iso):
        return goal.model_copy(update={"weekly_progress": weekly})

    previous = goal.streak.current
    current = max(0, previous - 1)
    streak_update: dict = {
        "current": current,
        "active": current > 0,
        "last_check": add_days(today_iso, -1),
    }
    if goal.streak.highest_at == today_iso and goal.streak.highest == previous:
        streak_update["highest"] = max(0, goal.streak.highest - 1)
        streak_update["highest_at"] = None

    logger.info(
        "Habit day uncredited",
        extra={"goal_id": goal.id, "day": today_iso, "current": current, "weekly_count": weekly.count},
    )
    return goal.model_copy(
        update={"streak": goal.streak.model_copy(update=streak_update), "weekly_progress": weekly},
    )
