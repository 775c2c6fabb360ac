"""Tracker session owning the in-memory goals and tasks.

Every mutation computes the next snapshot with the pure services, swaps it in
immediately, then awaits the durable write. If the write fails the new
snapshot is kept, the collection stays dirty and ``flush()`` retries it.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence

from habitflow.core.config import settings
from habitflow.core.dates import to_iso_timestamp, today_local
from habitflow.core.logging import log_with_goal_context, span
from habitflow.domain.goal import Goal, ProjectGoal, QuitGoal
from habitflow.domain.state import TrackerState
from habitflow.domain.task import HabitTask, ProjectTask, StandaloneTask, Task
from habitflow.services import (
    project_service,
    quit_service,
    storage_service,
    task_service,
    toggle_service,
)


logger = logging.getLogger(__name__)


class Tracker:
    """Single writer for goals and tasks."""

    def __init__(
        self,
        state: TrackerState | None = None,
        today_provider: Callable[[], str] = today_local,
    ) -> None:
        self._state = state or TrackerState()
        self._today = today_provider
        self._dirty: set[str] = set()
        self._write_lock = asyncio.Lock()

    @classmethod
    async def load(cls, today_provider: Callable[[], str] = today_local) -> "Tracker":
        """Create a session from the persisted goals and tasks."""
        with span("tracker_service.load"):
            goals = await storage_service.load_goals()
            tasks = await storage_service.load_tasks()
            return cls(TrackerState(goals=goals, tasks=tasks), today_provider)

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def goals(self) -> list[Goal]:
        return self._state.goals

    @property
    def tasks(self) -> list[Task]:
        return self._state.tasks

    @property
    def pending_writes(self) -> frozenset[str]:
        """Collection keys whose latest state has not been saved yet."""
        return frozenset(self._dirty)

    def today(self) -> str:
        return self._today()

    async def flush(self) -> None:
        """Write every dirty collection.

        Raises:
            PersistenceError: If a write still fails; the collection stays dirty
        """
        async with self._write_lock:
            for key in sorted(self._dirty):
                if key == settings.goals_key:
                    await storage_service.save_goals(self._state.goals)
                else:
                    await storage_service.save_tasks(self._state.tasks)
                self._dirty.discard(key)

    async def _commit(self, *, goals: Sequence[Goal] | None = None, tasks: Sequence[Task] | None = None) -> None:
        # The snapshot is swapped before any await so readers never see a half-applied change.
        update: dict[str, list] = {}
        if goals is not None:
            update["goals"] = list(goals)
            self._dirty.add(settings.goals_key)
        if tasks is not None:
            update["tasks"] = list(tasks)
            self._dirty.add(settings.tasks_key)
        self._state = self._state.model_copy(update=update)
        await self.flush()

    async def _commit_tasks_and_reevaluate(self, tasks: list[Task], touched: Sequence[Task]) -> None:
        # Only the habits owning the touched tasks can gain or lose today's credit.
        goal_ids = {goal_id for task in touched if (goal_id := getattr(task, "goal_id", None))}
        goals, changed = toggle_service.reevaluate_today(self._state.goals, tasks, self.today(), goal_ids)
        await self._commit(goals=goals if changed else None, tasks=tasks)

    # Goals

    async def add_goal(self, goal: Goal) -> Goal:
        with span("tracker_service.add_goal"):
            await self._commit(goals=[*self._state.goals, goal])
            log_with_goal_context(logger, "info", "Goal added", goal_id=goal.id, type=goal.type)
            return goal

    async def update_goal(self, goal: Goal) -> Goal | None:
        """Replace a goal by id; unknown ids are ignored."""
        with span("tracker_service.update_goal"):
            if self._state.find_goal(goal.id) is None:
                log_with_goal_context(logger, "debug", "update_goal: goal not found", goal_id=goal.id)
                return None
            stamped = goal.model_copy(update={"updated_at": to_iso_timestamp()})
            goals = [stamped if g.id == goal.id else g for g in self._state.goals]
            await self._commit(goals=goals)
            return stamped

    async def delete_goal(self, goal_id: str) -> None:
        """Remove a goal together with its tasks."""
        with span("tracker_service.delete_goal"):
            if self._state.find_goal(goal_id) is None:
                log_with_goal_context(logger, "debug", "delete_goal: goal not found", goal_id=goal_id)
                return
            goals = [g for g in self._state.goals if g.id != goal_id]
            tasks = [t for t in self._state.tasks if getattr(t, "goal_id", None) != goal_id]
            await self._commit(goals=goals, tasks=tasks)
            log_with_goal_context(logger, "info", "Goal deleted", goal_id=goal_id)

    # Tasks

    async def add_task(self, task: Task) -> Task:
        with span("tracker_service.add_task"):
            await self._commit_tasks_and_reevaluate(task_service.add_task(self._state.tasks, task), [task])
            return task

    async def bulk_add_tasks(self, tasks: Sequence[Task]) -> list[Task]:
        with span("tracker_service.bulk_add_tasks"):
            await self._commit_tasks_and_reevaluate(task_service.bulk_add(self._state.tasks, tasks), tasks)
            return list(tasks)

    async def update_task(self, task: Task) -> Task | None:
        """Replace a task by id; unknown ids are ignored."""
        with span("tracker_service.update_task"):
            previous = self._state.find_task(task.id)
            if previous is None:
                logger.debug("update_task: task not found", extra={"task_id": task.id})
                return None
            await self._commit_tasks_and_reevaluate(task_service.update_task(self._state.tasks, task), [previous, task])
            return task

    async def delete_task(self, task_id: str) -> None:
        """Remove a task and re-check today for the habit it belonged to."""
        with span("tracker_service.delete_task"):
            task = self._state.find_task(task_id)
            if task is None:
                logger.debug("delete_task: task not found", extra={"task_id": task_id})
                return
            await self._commit_tasks_and_reevaluate(task_service.delete_task(self._state.tasks, task_id), [task])

    async def toggle_task_today(self, task_id: str) -> Task | None:
        """Mark or unmark a task for today and update the goal it feeds.

        Returns:
            The updated task, or None when the id is unknown
        """
        with span("tracker_service.toggle_task_today"):
            task = self._state.find_task(task_id)
            today = self.today()

            match task:
                case None:
                    logger.debug("toggle_task_today: task not found", extra={"task_id": task_id})
                    return None
                case HabitTask():
                    toggled = task_service.toggle_done_on(task, today)
                    tasks = task_service.update_task(self._state.tasks, toggled)
                    goal = toggle_service.recompute_after_task_toggle(self._state.goals, task.goal_id, tasks, today)
                    goals = None if goal is None else [goal if g.id == goal.id else g for g in self._state.goals]
                    await self._commit(goals=goals, tasks=tasks)
                case StandaloneTask():
                    toggled = task_service.toggle_standalone_done(task, today)
                    await self._commit(tasks=task_service.update_task(self._state.tasks, toggled))
                case ProjectTask():
                    toggled = task_service.toggle_project_task(task)
                    await self._commit(tasks=task_service.update_task(self._state.tasks, toggled))
                case _:
                    logger.warning("toggle_task_today: unsupported task type", extra={"task_id": task_id})
                    return None

            return toggled

    async def toggle_subtask(self, task_id: str, subtask_id: str) -> Task | None:
        with span("tracker_service.toggle_subtask"):
            task = self._state.find_task(task_id)
            if not isinstance(task, HabitTask | ProjectTask | StandaloneTask):
                logger.debug("toggle_subtask: task not found", extra={"task_id": task_id})
                return None
            toggled = task_service.toggle_subtask(task, subtask_id)
            await self._commit(tasks=task_service.update_task(self._state.tasks, toggled))
            return toggled

    # Quit goals

    async def register_relapse(self, goal_id: str, reason: str | None = None) -> QuitGoal | None:
        """Log a relapse for today on a quit goal; other goals are ignored."""
        with span("tracker_service.register_relapse"):
            goal = self._state.find_goal(goal_id)
            if not isinstance(goal, QuitGoal):
                log_with_goal_context(logger, "debug", "register_relapse: not a quit goal", goal_id=goal_id)
                return None
            today = self.today()
            updated = quit_service.register_relapse(goal, reason, today)
            updated = quit_service.refresh_quit_stats(updated, today)
            updated = updated.model_copy(update={"updated_at": to_iso_timestamp()})
            await self._commit(goals=[updated if g.id == goal_id else g for g in self._state.goals])
            return updated

    # Day change

    async def run_day_change(self, today: str | None = None) -> list[Goal]:
        """Roll every goal forward to ``today`` (defaults to the current local day)."""
        with span("tracker_service.run_day_change"):
            today = today or self.today()
            goals = toggle_service.run_day_change_rollover(self._state.goals, self._state.tasks, today)
            goals = [quit_service.refresh_quit_stats(g, today) if isinstance(g, QuitGoal) else g for g in goals]
            if goals == self._state.goals:
                logger.debug("Day change left goals unchanged", extra={"today": today})
                return goals
            await self._commit(goals=goals)
            return goals

    # Queries

    def project_percent(self, goal_id: str) -> int:
        return project_service.project_percent(self._state.tasks, goal_id)

    def project_tasks(self, goal_id: str) -> list[ProjectTask]:
        """A project's tasks in the goal's display order."""
        goal = self._state.find_goal(goal_id)
        if not isinstance(goal, ProjectGoal):
            return []
        return project_service.sort_project_tasks(
            task_service.get_tasks_by_goal(self._state.tasks, goal_id), goal.task_ordering
        )

    def tasks_for_today(self) -> list[Task]:
        return task_service.tasks_for_today(self._state.tasks, self.today())
