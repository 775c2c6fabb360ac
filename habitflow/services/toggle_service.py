"""Orchestrates habit progress after task changes and local day changes."""

import logging
from collections.abc import Collection, Sequence
from datetime import datetime

from habitflow.core.dates import same_day, to_iso_timestamp
from habitflow.core.logging import span
from habitflow.domain.goal import Goal, HabitGoal, QuitGoal
from habitflow.domain.task import Task
from habitflow.services.habit_progress_service import (
    apply_rollover,
    ensure_weekly_window,
    is_day_complete,
    register_day_if_needed,
    uncount_if_broken,
)
from habitflow.services.quit_service import apply_quit_daily_rollover


logger = logging.getLogger(__name__)


def _evaluate_today(goal: HabitGoal, all_tasks: Sequence[Task], today_iso: str) -> HabitGoal:
    if is_day_complete(goal.id, all_tasks, today_iso):
        return register_day_if_needed(goal, all_tasks, today_iso)
    return uncount_if_broken(goal, all_tasks, today_iso)


def recompute_after_task_toggle(
    goals: Sequence[Goal],
    goal_id: str,
    all_tasks_after_mutation: Sequence[Task],
    today_iso: str,
    now: datetime | None = None,
) -> HabitGoal | None:
    """Recompute a habit goal after one of its tasks was marked or unmarked.

    The task list must already contain the change. Tasks are never modified.

    Args:
        goals: Current goals snapshot
        goal_id: Goal owning the toggled task
        all_tasks_after_mutation: Full task list including the toggle
        today_iso: Local date of the toggle
        now: Timestamp stamped into updatedAt (defaults to the current time)

    Returns:
        The updated habit goal, or None when the goal is missing or not a habit
    """
    with span("toggle_service.recompute_after_task_toggle"):
        goal = next((g for g in goals if g.id == goal_id), None)
        if goal is None:
            logger.debug("Toggle for unknown goal ignored", extra={"goal_id": goal_id})
            return None
        if not isinstance(goal, HabitGoal):
            logger.debug("Toggle for non-habit goal ignored", extra={"goal_id": goal_id, "type": goal.type})
            return None

        updated = ensure_weekly_window(goal, today_iso)
        updated = apply_rollover(updated, all_tasks_after_mutation, today_iso)
        updated = _evaluate_today(updated, all_tasks_after_mutation, today_iso)

        return updated.model_copy(update={"updated_at": to_iso_timestamp(now)})


def run_day_change_rollover(
    goals: Sequence[Goal],
    all_tasks: Sequence[Task],
    today_iso: str,
    now: datetime | None = None,
) -> list[Goal]:
    """Roll every habit and quit goal forward to a new local day.

    Habits get their weekly window refreshed and missed days backfilled; quit
    goals advance their relapse-free streak. Other goals pass through. Only
    goals that actually changed get a new updatedAt.
    """
    with span("toggle_service.run_day_change_rollover"):
        stamp = to_iso_timestamp(now)
        result: list[Goal] = []
        for goal in goals:
            match goal:
                case HabitGoal():
                    rolled = apply_rollover(ensure_weekly_window(goal, today_iso), all_tasks, today_iso)
                case QuitGoal():
                    rolled = apply_quit_daily_rollover(goal, today_iso)
                case _:
                    result.append(goal)
                    continue
            result.append(rolled if rolled == goal else rolled.model_copy(update={"updated_at": stamp}))

        logger.info("Day change rollover complete", extra={"today": today_iso, "goals": len(result)})
        return result


def reevaluate_today(
    goals: Sequence[Goal],
    all_tasks: Sequence[Task],
    today_iso: str,
    goal_ids: Collection[str],
    now: datetime | None = None,
) -> tuple[list[Goal], bool]:
    """Re-check today for the habits owning tasks that were added, changed or removed.

    Adding an unfinished task for today makes a credited day incomplete again;
    deleting the last unfinished one can complete it. Only today's credit is
    ever reversed, so goals not credited today keep their weekly count. Only
    goals whose state actually changed get a new updatedAt.

    Returns:
        Tuple of (goals, changed)
    """
    stamp = to_iso_timestamp(now)
    changed = False
    result: list[Goal] = []
    for goal in goals:
        if not isinstance(goal, HabitGoal) or goal.id not in goal_ids:
            result.append(goal)
            continue
        updated = ensure_weekly_window(goal, today_iso)
        if is_day_complete(updated.id, all_tasks, today_iso):
            updated = register_day_if_needed(updated, all_tasks, today_iso)
        elif same_day(updated.streak.last_check, today_iso):
            updated = uncount_if_broken(updated, all_tasks, today_iso)
        if updated != goal:
            changed = True
            updated = updated.model_copy(update={"updated_at": stamp})
        result.append(updated)
    return result, changed
