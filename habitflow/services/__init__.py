from habitflow.services import (
    habit_progress_service,
    project_service,
    quit_service,
    standalone_service,
    storage_service,
    task_service,
    toggle_service,
)


__all__ = [
    "habit_progress_service",
    "project_service",
    "quit_service",
    "standalone_service",
    "storage_service",
    "task_service",
    "toggle_service",
]
