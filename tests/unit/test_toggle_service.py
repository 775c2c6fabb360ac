"""Unit tests for toggle_service module."""

from datetime import UTC, datetime

import pytest

from habitflow.domain.goal import HabitStreak, QuitGoal, QuitStreak, Relapse, UnknownGoal, WeeklyProgress
from habitflow.domain.task import HabitTask
from habitflow.services.toggle_service import (
    recompute_after_task_toggle,
    reevaluate_today,
    run_day_change_rollover,
)
from tests.unit.conftest import FRIDAY, MONDAY, TUESDAY, WEDNESDAY


NOW = datetime(2024, 1, 3, 18, 30, tzinfo=UTC)


@pytest.mark.unit
class TestRecomputeAfterTaskToggle:
    """Tests for recompute_after_task_toggle function."""

    def test_mark_monday(self, habit_goal, habit_tasks, mark_done):
        tasks = mark_done(habit_tasks, "t-mon", MONDAY)

        result = recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY, now=NOW)

        assert result.streak.current == 1
        assert result.streak.highest == 1
        assert result.streak.last_check == MONDAY
        assert result.weekly_progress.count == 1
        assert result.updated_at == "2024-01-03T18:30:00Z"

    def test_mark_then_unmark_wednesday(self, habit_goal, habit_tasks, mark_done):
        monday_done = mark_done(habit_tasks, "t-mon", MONDAY)
        goal = recompute_after_task_toggle([habit_goal], "g-habit", monday_done, MONDAY)

        goal = run_day_change_rollover([goal], monday_done, WEDNESDAY)[0]
        assert goal.streak.current == 1

        wednesday_done = mark_done(monday_done, "t-wed", WEDNESDAY)
        goal = recompute_after_task_toggle([goal], "g-habit", wednesday_done, WEDNESDAY)
        assert (goal.streak.current, goal.streak.highest, goal.streak.last_check) == (2, 2, WEDNESDAY)

        goal = recompute_after_task_toggle([goal], "g-habit", monday_done, WEDNESDAY)
        assert goal.streak.current == 1
        assert goal.streak.highest == 1
        assert goal.streak.highest_at is None
        assert goal.streak.last_check == TUESDAY

    def test_missing_goal_returns_none(self, habit_goal, habit_tasks):
        assert recompute_after_task_toggle([habit_goal], "nope", habit_tasks, MONDAY) is None

    def test_non_habit_goal_returns_none(self, project_goal, quit_goal, habit_tasks):
        goals = [project_goal, quit_goal]
        assert recompute_after_task_toggle(goals, "g-project", habit_tasks, MONDAY) is None
        assert recompute_after_task_toggle(goals, "g-quit", habit_tasks, MONDAY) is None

    def test_tasks_are_not_modified(self, habit_goal, habit_tasks, mark_done):
        tasks = mark_done(habit_tasks, "t-mon", MONDAY)
        snapshot = [t.model_copy(deep=True) for t in tasks]

        recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY)

        assert tasks == snapshot

    def test_missed_day_breaks_before_crediting_today(self, habit_goal, habit_tasks, mark_done):
        goal = habit_goal.model_copy(
            update={
                "streak": HabitStreak(current=3, highest=3, active=True, last_check=MONDAY),
                "weekly_progress": WeeklyProgress(count=1, updated_at=MONDAY),
            }
        )
        tasks = mark_done(habit_tasks, "t-fri", FRIDAY)

        result = recompute_after_task_toggle([goal], "g-habit", tasks, FRIDAY)

        assert result.streak.current == 1
        assert result.streak.highest == 3
        assert result.weekly_progress.count == 2

    def test_new_week_resets_weekly_count(self, habit_goal, habit_tasks, mark_done):
        goal = habit_goal.model_copy(
            update={
                "streak": HabitStreak(current=3, highest=3, active=True, last_check=FRIDAY),
                "weekly_progress": WeeklyProgress(count=3, updated_at=FRIDAY),
            }
        )
        tasks = mark_done(habit_tasks, "t-mon", "2024-01-08")

        result = recompute_after_task_toggle([goal], "g-habit", tasks, "2024-01-08")

        assert result.weekly_progress.count == 1
        assert result.streak.current == 4


@pytest.mark.unit
class TestRunDayChangeRollover:
    """Tests for run_day_change_rollover function."""

    def test_habit_quit_and_project_goals(self, habit_goal, project_goal, habit_tasks):
        habit = habit_goal.model_copy(
            update={"streak": HabitStreak(current=2, highest=2, active=True, last_check=MONDAY)}
        )
        quit_goal = QuitGoal(
            id="g-quit",
            title="No sugar",
            streak=QuitStreak(last_check=MONDAY),
            relapses=[Relapse(date=WEDNESDAY)],
        )

        result = run_day_change_rollover([habit, project_goal, quit_goal], habit_tasks, FRIDAY, now=NOW)

        assert result[0].streak.current == 0
        assert result[0].updated_at == "2024-01-03T18:30:00Z"
        assert result[1] == project_goal
        assert result[2].streak.current == 2
        assert result[2].streak.last_check == FRIDAY

    def test_unknown_goal_passes_through(self, habit_tasks):
        unknown = UnknownGoal.model_validate({"id": "u1", "type": "dream", "title": "Fly"})
        assert run_day_change_rollover([unknown], habit_tasks, FRIDAY) == [unknown]

    def test_unchanged_habit_keeps_timestamp(self, habit_goal, habit_tasks, mark_done):
        tasks = mark_done(habit_tasks, "t-mon", MONDAY)
        goal = recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY, now=NOW)

        result = run_day_change_rollover([goal], tasks, TUESDAY)

        assert result == [goal]

    def test_idempotent_for_same_day(self, habit_goal, habit_tasks):
        habit = habit_goal.model_copy(
            update={"streak": HabitStreak(current=2, highest=2, active=True, last_check=MONDAY)}
        )

        once = run_day_change_rollover([habit], habit_tasks, FRIDAY, now=NOW)
        twice = run_day_change_rollover(once, habit_tasks, FRIDAY, now=NOW)

        assert twice == once


@pytest.mark.unit
class TestReevaluateToday:
    """Tests for reevaluate_today function."""

    def test_new_unfinished_task_uncredits_today(self, habit_goal, habit_tasks, mark_done):
        tasks = mark_done(habit_tasks, "t-mon", MONDAY)
        goal = recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY)
        tasks = [*tasks, HabitTask(id="t-mon-2", goal_id="g-habit", day_of_week=1)]

        goals, changed = reevaluate_today([goal], tasks, MONDAY, {"g-habit"})

        assert changed is True
        assert goals[0].streak.current == 0
        assert goals[0].weekly_progress.count == 0

    def test_deleting_last_unfinished_task_credits_today(self, habit_goal, habit_tasks, mark_done):
        tasks = [*habit_tasks, HabitTask(id="t-mon-2", goal_id="g-habit", day_of_week=1)]
        tasks = mark_done(tasks, "t-mon", MONDAY)
        goal = recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY)
        assert goal.streak.current == 0

        remaining = [t for t in tasks if t.id != "t-mon-2"]
        goals, changed = reevaluate_today([goal], remaining, MONDAY, {"g-habit"})

        assert changed is True
        assert goals[0].streak.current == 1

    def test_unchanged_goals_keep_timestamp(self, habit_goal, habit_tasks, mark_done):
        tasks = mark_done(habit_tasks, "t-mon", MONDAY)
        goal = recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY, now=NOW)

        goals, changed = reevaluate_today([goal], tasks, MONDAY, {"g-habit"})

        assert changed is False
        assert goals[0].updated_at == goal.updated_at

    def test_only_owning_goals_are_checked(self, habit_goal, habit_tasks, mark_done):
        tasks = mark_done(habit_tasks, "t-mon", MONDAY)
        goal = recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY)
        tasks = [*tasks, HabitTask(id="t-mon-2", goal_id="g-habit", day_of_week=1)]

        goals, changed = reevaluate_today([goal], tasks, MONDAY, {"g-other"})

        assert changed is False
        assert goals == [goal]

    def test_credit_from_earlier_day_is_kept(self, habit_goal, habit_tasks, mark_done):
        tasks = mark_done(habit_tasks, "t-mon", MONDAY)
        goal = recompute_after_task_toggle([habit_goal], "g-habit", tasks, MONDAY)
        tasks = [*tasks, HabitTask(id="t-tue", goal_id="g-habit", day_of_week=2)]

        goals, changed = reevaluate_today([goal], tasks, TUESDAY, {"g-habit"})

        assert changed is False
        assert goals[0].weekly_progress.count == 1
        assert goals[0].streak.current == 1
