"""Goal domain models (tagged union on ``type``)."""

import logging
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import Discriminator, Field, Tag, TypeAdapter, field_validator, model_validator

from habitflow.domain.base import RecordModel


logger = logging.getLogger(__name__)


class GoalType(StrEnum):
    """Kind of goal."""

    HABIT = "habit"
    PROJECT = "project"
    QUIT = "quit"


class ProjectOrdering(StrEnum):
    """How a project's tasks are ordered."""

    PRIORITY = "priority"
    ORDER = "order"
    MANUAL = "manual"


class GoalMessage(RecordModel):
    """A motivational message attached to a goal."""

    type: str = Field(default="text", description="text, audio or video")
    content: str = Field(default="", description="Message text or media URI")


class GoalMessages(RecordModel):
    """Messages from the user's past and future self."""

    from_past: GoalMessage = Field(default_factory=GoalMessage)
    from_future: GoalMessage = Field(default_factory=GoalMessage)


class BaseGoal(RecordModel):
    """Fields shared by every goal variant."""

    id: str = Field(..., description="Unique goal ID")
    title: str = Field(..., description="Goal title")
    category: str = Field(default="", description="User-chosen category")
    emoji: str | None = Field(default=None, description="Display emoji")
    description: str | None = Field(default=None, description="Longer description")
    start_date: str | None = Field(default=None, description="Start date (ISO)")
    end_date: str | None = Field(default=None, description="Optional end date (ISO)")
    messages: GoalMessages = Field(default_factory=GoalMessages)
    reminders_enabled: bool = Field(default=False, description="Whether reminders are on")
    created_at: str = Field(default="", description="Creation timestamp (ISO format)")
    updated_at: str = Field(default="", description="Last update timestamp (ISO format)")


class HabitStreak(RecordModel):
    """Consecutive completed planned days for a habit."""

    current: int = Field(default=0, ge=0)
    highest: int = Field(default=0, ge=0)
    active: bool = False
    last_check: str = Field(default="", description="Last day credited (ISO date) or empty")
    highest_at: str | None = Field(default=None, description="Day the highest value was reached")


class WeeklyProgress(RecordModel):
    """Completed planned days in the current Monday-start week."""

    count: int = Field(default=0, ge=0)
    updated_at: str = Field(default="", description="Last day the counter changed (ISO date)")


class HabitGoal(BaseGoal):
    """Habit measured by completed planned weekdays."""

    type: Literal["habit"] = "habit"
    progress_type: Literal["days"] = "days"
    days_of_week: list[int] = Field(default_factory=list, description="Planned weekdays (0=Sunday..6=Saturday)")
    weekly_target: int = Field(default=0, ge=0, description="Number of planned weekdays")
    streak: HabitStreak = Field(default_factory=HabitStreak)
    weekly_progress: WeeklyProgress = Field(default_factory=WeeklyProgress)

    @model_validator(mode="after")
    def derive_weekly_target(self) -> "HabitGoal":
        """Derive weekly_target from days_of_week when it was not given."""
        if "weekly_target" not in self.model_fields_set:
            self.weekly_target = len(set(self.days_of_week))
        return self


class ProjectGoal(BaseGoal):
    """Project measured by completed steps."""

    type: Literal["project"] = "project"
    progress_type: Literal["tasks"] = "tasks"
    task_ordering: ProjectOrdering = Field(default=ProjectOrdering.PRIORITY)

    @field_validator("task_ordering", mode="before")
    @classmethod
    def default_unknown_ordering(cls, v: Any) -> Any:
        """Fall back to priority ordering for missing or unknown values."""
        if v is None:
            return ProjectOrdering.PRIORITY
        if v not in {o.value for o in ProjectOrdering}:
            logger.warning("Unknown project ordering, using priority", extra={"task_ordering": v})
            return ProjectOrdering.PRIORITY
        return v


class QuitStreak(RecordModel):
    """Consecutive relapse-free days."""

    current: int = Field(default=0, ge=0)
    highest: int = Field(default=0, ge=0)
    active: bool = False
    last_check: str = Field(default="", description="Last day processed (ISO date) or empty")


class Relapse(RecordModel):
    """A day on which the quit behaviour recurred."""

    date: str
    reason: str | None = None


class QuitStats(RecordModel):
    """Derived relapse frequency."""

    rolling_per_week: float = 0.0
    updated_at: str = ""


class QuitGoal(BaseGoal):
    """Goal to stop a behaviour, measured by relapse-free days."""

    type: Literal["quit"] = "quit"
    progress_type: Literal["streak"] = "streak"
    streak: QuitStreak = Field(default_factory=QuitStreak)
    relapses: list[Relapse] = Field(default_factory=list)
    baseline_per_week: float | None = Field(default=None, description="Initial estimate of weekly frequency")
    stats: QuitStats | None = None


class UnknownGoal(RecordModel):
    """A persisted goal with an unrecognised type tag or invalid shape.

    It keeps every raw field so saving writes it back unchanged, and no
    engine ever acts on it.
    """

    id: str = ""
    type: Any = ""


_GOAL_TYPES = {t.value for t in GoalType}


def _goal_tag(value: Any) -> str:
    if isinstance(value, UnknownGoal):
        return "unknown"
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if isinstance(tag, str) and tag in _GOAL_TYPES else "unknown"


Goal = Annotated[
    Annotated[HabitGoal, Tag(GoalType.HABIT.value)]
    | Annotated[ProjectGoal, Tag(GoalType.PROJECT.value)]
    | Annotated[QuitGoal, Tag(GoalType.QUIT.value)]
    | Annotated[UnknownGoal, Tag("unknown")],
    Discriminator(_goal_tag),
]

goal_adapter: TypeAdapter[Goal] = TypeAdapter(Goal)
