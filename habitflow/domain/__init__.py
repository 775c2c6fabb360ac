"""Domain models."""

from habitflow.domain.goal import (
    Goal,
    GoalMessage,
    GoalMessages,
    GoalType,
    HabitGoal,
    HabitStreak,
    ProjectGoal,
    ProjectOrdering,
    QuitGoal,
    QuitStats,
    QuitStreak,
    Relapse,
    UnknownGoal,
    WeeklyProgress,
)
from habitflow.domain.state import TrackerState
from habitflow.domain.task import (
    HabitTask,
    Priority,
    ProjectTask,
    Recurrence,
    RecurrenceType,
    StandaloneTask,
    Subtask,
    Task,
    TaskReminder,
    TaskType,
    UnknownTask,
)


__all__ = [
    "Goal",
    "GoalMessage",
    "GoalMessages",
    "GoalType",
    "HabitGoal",
    "HabitStreak",
    "HabitTask",
    "Priority",
    "ProjectGoal",
    "ProjectOrdering",
    "ProjectTask",
    "QuitGoal",
    "QuitStats",
    "QuitStreak",
    "Recurrence",
    "RecurrenceType",
    "Relapse",
    "StandaloneTask",
    "Subtask",
    "Task",
    "TaskReminder",
    "TaskType",
    "TrackerState",
    "UnknownGoal",
    "UnknownTask",
    "WeeklyProgress",
]
