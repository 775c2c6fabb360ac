"""Unit tests for goal and task models."""

import pytest

from habitflow.domain.goal import HabitGoal, ProjectGoal, ProjectOrdering, UnknownGoal, goal_adapter
from habitflow.domain.state import TrackerState
from habitflow.domain.task import ProjectTask, StandaloneTask, UnknownTask, task_adapter


@pytest.mark.unit
class TestGoalModels:
    """Tests for goal parsing."""

    def test_discriminates_on_type(self):
        goal = goal_adapter.validate_python({"id": "g", "type": "project", "title": "Thesis", "taskOrdering": "order"})

        assert isinstance(goal, ProjectGoal)
        assert goal.task_ordering == ProjectOrdering.ORDER

    def test_unknown_ordering_falls_back_to_priority(self):
        goal = ProjectGoal.model_validate({"id": "g", "title": "t", "taskOrdering": "alphabetical"})
        assert goal.task_ordering == ProjectOrdering.PRIORITY

    def test_weekly_target_derived_from_days(self):
        assert HabitGoal(id="g", title="t", days_of_week=[1, 3, 3, 5]).weekly_target == 3

    def test_explicit_weekly_target_kept(self):
        assert HabitGoal.model_validate({"id": "g", "title": "t", "daysOfWeek": [1], "weeklyTarget": 4}).weekly_target == 4

    def test_missing_type_is_unknown(self):
        assert isinstance(goal_adapter.validate_python({"id": "g", "title": "t"}), UnknownGoal)

    def test_non_string_type_is_unknown(self):
        assert isinstance(goal_adapter.validate_python({"id": "g", "type": ["habit"]}), UnknownGoal)

    def test_to_record_uses_camel_case(self):
        record = HabitGoal(id="g", title="t", days_of_week=[1], reminders_enabled=True).to_record()

        assert record["daysOfWeek"] == [1]
        assert record["remindersEnabled"] is True
        assert record["weeklyProgress"] == {"count": 0, "updatedAt": ""}
        assert "emoji" not in record


@pytest.mark.unit
class TestTaskModels:
    """Tests for task parsing."""

    def test_unknown_priority_dropped(self):
        task = task_adapter.validate_python({"id": "p", "type": "project", "goalId": "g", "priority": "urgent"})

        assert isinstance(task, ProjectTask)
        assert task.priority is None

    def test_standalone_defaults_to_once(self):
        task = task_adapter.validate_python({"id": "s", "type": "standalone"})

        assert isinstance(task, StandaloneTask)
        assert task.recurrence.type == "once"

    def test_unknown_recurrence_preserved(self):
        task = task_adapter.validate_python({"id": "s", "type": "standalone", "recurrence": {"type": "yearly"}})
        assert task.to_record()["recurrence"] == {"type": "yearly"}

    def test_unknown_task_type(self):
        assert isinstance(task_adapter.validate_python({"id": "x", "type": "chore"}), UnknownTask)


@pytest.mark.unit
class TestTrackerState:
    """Tests for TrackerState lookups."""

    def test_find(self, habit_goal, habit_tasks):
        state = TrackerState(goals=[habit_goal], tasks=habit_tasks)

        assert state.find_goal("g-habit") == habit_goal
        assert state.find_task("t-fri").day_of_week == 5
        assert state.find_goal("nope") is None
        assert state.find_task("nope") is None
