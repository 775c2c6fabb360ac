"""In-memory tracker state snapshot."""

from pydantic import BaseModel, Field

from habitflow.domain.goal import Goal
from habitflow.domain.task import Task


class TrackerState(BaseModel):
    """Goals and tasks as one immutable snapshot.

    Services never mutate a snapshot; they return a new one.
    """

    goals: list[Goal] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)

    def find_goal(self, goal_id: str) -> Goal | None:
        return next((g for g in self.goals if g.id == goal_id), None)

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)
