"""Project goal progress and task ordering."""

import math
import sys
from collections.abc import Callable, Sequence

from habitflow.core.config import constants
from habitflow.domain.goal import ProjectOrdering
from habitflow.domain.task import ProjectTask, Task


def _goal_tasks(all_tasks: Sequence[Task], goal_id: str) -> list[Task]:
    return [task for task in all_tasks if getattr(task, "goal_id", None) == goal_id]


def project_percent(all_tasks: Sequence[Task], goal_id: str) -> int:
    """Percentage (0-100) of a goal's tasks that are completed.

    Halves round up. A goal without tasks is at 0%.
    """
    tasks = _goal_tasks(all_tasks, goal_id)
    if not tasks:
        return 0
    completed = sum(1 for task in tasks if task.completed)
    return math.floor(100 * completed / len(tasks) + 0.5)


def _priority_rank(task: ProjectTask) -> int:
    return constants.PRIORITY_RANK[task.priority or constants.DEFAULT_PRIORITY]


def _order_key(task: ProjectTask) -> int:
    return task.order if task.order is not None else sys.maxsize


def _manual_key(task: ProjectTask) -> int:
    return task.manual_index if task.manual_index is not None else sys.maxsize


_SORT_KEYS: dict[ProjectOrdering, Callable[[ProjectTask], tuple]] = {
    ProjectOrdering.PRIORITY: lambda t: (_priority_rank(t), _order_key(t), t.completed, t.title),
    ProjectOrdering.ORDER: lambda t: (_order_key(t), _priority_rank(t), t.completed, t.title),
    ProjectOrdering.MANUAL: lambda t: (_manual_key(t), _priority_rank(t), _order_key(t), t.completed, t.title),
}


def sort_project_tasks(tasks: Sequence[Task], ordering: ProjectOrdering) -> list[ProjectTask]:
    """Sort a project's tasks for display.

    Incomplete tasks come before completed ones when the ordering keys tie;
    tasks without an order or manual index go last.
    """
    project_tasks = [task for task in tasks if isinstance(task, ProjectTask)]
    return sorted(project_tasks, key=_SORT_KEYS[ordering])
