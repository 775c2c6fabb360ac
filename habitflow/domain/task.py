"""Task domain models (tagged union on ``type``)."""

import logging
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import Discriminator, Field, Tag, TypeAdapter, field_validator

from habitflow.domain.base import RecordModel


logger = logging.getLogger(__name__)


class TaskType(StrEnum):
    """Kind of task."""

    HABIT = "habit"
    PROJECT = "project"
    STANDALONE = "standalone"


class Priority(StrEnum):
    """Project task priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecurrenceType(StrEnum):
    """How often a standalone task comes due."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class Subtask(RecordModel):
    """Checklist item inside a task."""

    id: str
    title: str = ""
    completed: bool = False


class TaskReminder(RecordModel):
    """Reminder settings for a task."""

    enabled: bool = False
    time: str | None = None


class BaseTask(RecordModel):
    """Fields shared by every task variant."""

    id: str = Field(..., description="Unique task ID")
    title: str = Field(default="", description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    reminder: TaskReminder | None = None
    subtasks: list[Subtask] = Field(default_factory=list)
    completed: bool = Field(default=False, description="Completion flag (projects and one-off tasks)")
    completed_dates: list[str] = Field(default_factory=list, description="ISO dates this task was marked done")
    created_at: str = Field(default="", description="Creation timestamp (ISO format)")
    updated_at: str = Field(default="", description="Last update timestamp (ISO format)")


class HabitTask(BaseTask):
    """One planned weekday of a habit goal."""

    type: Literal["habit"] = "habit"
    goal_id: str = Field(..., description="Owning habit goal")
    day_of_week: int = Field(..., ge=0, le=6, description="Planned weekday (0=Sunday..6=Saturday)")


class ProjectTask(BaseTask):
    """A step of a project goal."""

    type: Literal["project"] = "project"
    goal_id: str = Field(..., description="Owning project goal")
    priority: Priority | None = None
    order: int | None = Field(default=None, description="Explicit step number (may repeat)")
    manual_index: int | None = Field(default=None, description="Position in a manually ordered list")

    @field_validator("priority", mode="before")
    @classmethod
    def drop_unknown_priority(cls, v: Any) -> Any:
        """Treat unknown priorities as unset."""
        if v is not None and v not in {p.value for p in Priority}:
            logger.warning("Unknown task priority, ignoring", extra={"priority": v})
            return None
        return v


class Recurrence(RecordModel):
    """Recurrence descriptor for standalone tasks.

    The tag is stored verbatim so values written by newer app versions
    survive a load/save cycle; ``kind`` is None for tags this version
    does not understand.
    """

    type: str = RecurrenceType.ONCE.value
    interval: int | None = Field(default=None, description="Every N weeks or months")
    days_of_week: list[int] | None = None

    @field_validator("type")
    @classmethod
    def warn_unknown_type(cls, v: str) -> str:
        if v not in {r.value for r in RecurrenceType}:
            logger.warning("Unknown recurrence type, task will never be due", extra={"recurrence_type": v})
        return v

    @property
    def kind(self) -> RecurrenceType | None:
        try:
            return RecurrenceType(self.type)
        except ValueError:
            return None


class StandaloneTask(BaseTask):
    """A task with its own recurrence and no goal."""

    type: Literal["standalone"] = "standalone"
    recurrence: Recurrence = Field(default_factory=Recurrence)


class UnknownTask(RecordModel):
    """A persisted task with an unrecognised type tag or invalid shape."""

    id: str = ""
    type: Any = ""


_TASK_TYPES = {t.value for t in TaskType}


def _task_tag(value: Any) -> str:
    if isinstance(value, UnknownTask):
        return "unknown"
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if isinstance(tag, str) and tag in _TASK_TYPES else "unknown"


Task = Annotated[
    Annotated[HabitTask, Tag(TaskType.HABIT.value)]
    | Annotated[ProjectTask, Tag(TaskType.PROJECT.value)]
    | Annotated[StandaloneTask, Tag(TaskType.STANDALONE.value)]
    | Annotated[UnknownTask, Tag("unknown")],
    Discriminator(_task_tag),
]

task_adapter: TypeAdapter[Task] = TypeAdapter(Task)
