"""ORM model package."""

from taskflow.models.entities import (
    PhaseTask,
    PhaseTaskWorker,
    Project,
    ProjectPhase,
    ProjectWorker,
    Role,
    TaskPriority,
    User,
    WorkerStatus,
    WorkStatus,
)

__all__ = [
    "PhaseTask",
    "PhaseTaskWorker",
    "Project",
    "ProjectPhase",
    "ProjectWorker",
    "Role",
    "TaskPriority",
    "User",
    "WorkerStatus",
    "WorkStatus",
]
