"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Callable

import pytest

from habitflow.core.config import settings
from habitflow.domain.goal import HabitGoal, ProjectGoal, QuitGoal
from habitflow.domain.task import HabitTask, ProjectTask
from tests.unit.mocks import InMemoryBlobStore


# 2024-01-01 is a Monday
MONDAY = "2024-01-01"
TUESDAY = "2024-01-02"
WEDNESDAY = "2024-01-03"
THURSDAY = "2024-01-04"
FRIDAY = "2024-01-05"


@pytest.fixture
def in_memory_store():
    """Provides a fresh InMemoryBlobStore for each test."""
    return InMemoryBlobStore()


@pytest.fixture
def patched_store(monkeypatch, in_memory_store):
    """Routes db_client blob calls to the in-memory store without retry delays."""
    monkeypatch.setattr("habitflow.core.db_client.get_blob", in_memory_store.get_blob)
    monkeypatch.setattr("habitflow.core.db_client.set_blob", in_memory_store.set_blob)
    monkeypatch.setattr(settings, "persist_retry_base_delay", 0.0)
    return in_memory_store


@pytest.fixture
def habit_goal() -> HabitGoal:
    """Mon/Wed/Fri habit that has never been credited."""
    return HabitGoal(
        id="g-habit",
        title="Run",
        days_of_week=[1, 3, 5],
        created_at="2023-12-20T10:00:00Z",
    )


@pytest.fixture
def habit_tasks() -> list[HabitTask]:
    """One task per planned weekday of ``habit_goal``."""
    return [
        HabitTask(id="t-mon", title="Run", goal_id="g-habit", day_of_week=1),
        HabitTask(id="t-wed", title="Run", goal_id="g-habit", day_of_week=3),
        HabitTask(id="t-fri", title="Run", goal_id="g-habit", day_of_week=5),
    ]


@pytest.fixture
def project_goal() -> ProjectGoal:
    return ProjectGoal(id="g-project", title="Write thesis")


@pytest.fixture
def project_tasks() -> list[ProjectTask]:
    """Four project steps, one of them completed."""
    return [
        ProjectTask(id="p1", title="Outline", goal_id="g-project", completed=True, order=1, priority="high"),
        ProjectTask(id="p2", title="Draft", goal_id="g-project", order=2, priority="medium"),
        ProjectTask(id="p3", title="Review", goal_id="g-project", order=3, priority="low"),
        ProjectTask(id="p4", title="Submit", goal_id="g-project", order=4),
    ]


@pytest.fixture
def quit_goal() -> QuitGoal:
    return QuitGoal(id="g-quit", title="No sugar", start_date="2023-12-01")


@pytest.fixture
def mark_done() -> Callable[[list, str, str], list]:
    """Returns a helper that marks a task done on a date inside a task list."""

    def _mark(tasks: list, task_id: str, date_iso: str) -> list:
        return [
            t.model_copy(update={"completed_dates": [*t.completed_dates, date_iso]}) if t.id == task_id else t
            for t in tasks
        ]

    return _mark
