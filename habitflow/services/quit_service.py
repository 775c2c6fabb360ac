"""Day-by-day streak walker for quit goals, driven by the relapse log."""

import logging

from habitflow.core.config import constants
from habitflow.core.dates import add_days, iter_days, local_date_of, parse_iso
from habitflow.domain.goal import QuitGoal, QuitStats, QuitStreak, Relapse


logger = logging.getLogger(__name__)


def _rollover_start(goal: QuitGoal) -> str:
    """Last day already processed, falling back to the goal's start or creation day."""
    if goal.streak.last_check:
        return goal.streak.last_check[:10]
    if goal.start_date:
        return goal.start_date[:10]
    if goal.created_at:
        return local_date_of(goal.created_at)
    return ""


def apply_quit_daily_rollover(goal: QuitGoal, today_iso: str) -> QuitGoal:
    """Advance a quit goal's streak through every unprocessed day up to today.

    Each relapse-free day adds one to the streak; a relapse day resets it.
    """
    last = _rollover_start(goal)
    if not last:
        return goal.model_copy(update={"streak": goal.streak.model_copy(update={"last_check": today_iso})})
    if last >= today_iso:
        return goal

    relapse_days = {relapse.date[:10] for relapse in goal.relapses}
    current = goal.streak.current
    highest = goal.streak.highest
    active = goal.streak.active

    for cursor in iter_days(add_days(last, 1), today_iso):
        if cursor in relapse_days:
            current = 0
            active = False
        else:
            current += 1
            highest = max(highest, current)
            active = True

    logger.debug(
        "Quit rollover applied",
        extra={"goal_id": goal.id, "from": last, "to": today_iso, "current": current},
    )
    streak = QuitStreak(current=current, highest=highest, active=active, last_check=today_iso)
    return goal.model_copy(update={"streak": streak})


def register_relapse(goal: QuitGoal, reason: str | None, day_iso: str) -> QuitGoal:
    """Log a relapse and reset the streak immediately, regardless of rollover state."""
    relapses = [*goal.relapses, Relapse(date=day_iso, reason=reason)]
    streak = goal.streak.model_copy(update={"current": 0, "active": False, "last_check": day_iso})

    logger.info("Relapse registered", extra={"goal_id": goal.id, "day": day_iso})
    return goal.model_copy(update={"relapses": relapses, "streak": streak})


def refresh_quit_stats(goal: QuitGoal, today_iso: str) -> QuitGoal:
    """Recompute the relapse frequency over the trailing window."""
    window_days = constants.QUIT_STATS_WINDOW_DAYS
    window_start = parse_iso(add_days(today_iso, -(window_days - 1)))
    today = parse_iso(today_iso)

    in_window = sum(1 for relapse in goal.relapses if window_start <= parse_iso(relapse.date) <= today)
    per_week = round(in_window / (window_days / 7), 2)

    return goal.model_copy(update={"stats": QuitStats(rolling_per_week=per_week, updated_at=today_iso)})
