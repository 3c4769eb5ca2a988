"""Immutable value objects produced by report generation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from uuid import UUID

from taskflow.models.entities import TaskPriority, WorkStatus

PERFORMANCE_GRADES: tuple[tuple[float, str], ...] = (
    (90.0, "A+ (Exceptional)"),
    (85.0, "A (Excellent)"),
    (80.0, "B+ (Very Good)"),
    (75.0, "B (Good)"),
    (70.0, "C+ (Above Average)"),
    (65.0, "C (Average)"),
    (60.0, "D+ (Below Average)"),
    (50.0, "D (Poor)"),
)
FAILING_GRADE = "F (Failing)"


def freeze(mapping: Mapping) -> Mapping:
    """Read-only view over a copy of ``mapping``; nested mappings are frozen too."""

    return MappingProxyType(
        {key: freeze(value) if isinstance(value, Mapping) else value for key, value in mapping.items()}
    )


@dataclass(frozen=True, slots=True)
class CountShare:
    count: int
    percentage: float


WorkerStatusBreakdown = Mapping[str, CountShare]
PeriodicTaskCount = Mapping[int, Mapping[int, int]]


@dataclass(frozen=True, slots=True)
class WorkerRef:
    """Worker linked to one or more tasks. Shared between tasks, never owned."""

    id: int
    public_id: UUID
    first_name: str
    last_name: str
    middle_name: str | None = None
    email: str | None = None

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)


@dataclass(frozen=True, slots=True)
class Task:
    id: int
    public_id: UUID
    name: str
    priority: TaskPriority
    status: WorkStatus
    start_datetime: datetime
    completion_datetime: datetime
    actual_completion_datetime: datetime | None = None
    description: str | None = None
    workers: tuple[WorkerRef, ...] = ()


@dataclass(frozen=True, slots=True)
class Phase:
    id: int
    public_id: UUID
    name: str
    status: WorkStatus
    start_datetime: datetime
    completion_datetime: datetime
    actual_completion_datetime: datetime | None = None
    description: str | None = None
    tasks: tuple[Task, ...] = ()


@dataclass(frozen=True, slots=True)
class ProjectTree:
    """Project with its owned phases, in source order."""

    id: int
    public_id: UUID
    name: str
    status: WorkStatus
    start_datetime: datetime
    completion_datetime: datetime
    actual_completion_datetime: datetime | None = None
    phases: tuple[Phase, ...] = ()


@dataclass(frozen=True, slots=True)
class WorkerScore:
    worker_id: int
    public_id: UUID
    first_name: str
    last_name: str
    total_tasks: int
    completed_tasks: int
    overall_score: float
    middle_name: str | None = None
    email: str | None = None

    @property
    def performance_grade(self) -> str:
        for threshold, grade in PERFORMANCE_GRADES:
            if self.overall_score >= threshold:
                return grade
        return FAILING_GRADE


@dataclass(frozen=True, slots=True)
class PhaseProgress:
    phase_id: int
    phase_name: str
    total_tasks: int
    completed_tasks: int
    weighted_progress: float
    simple_progress: float
    status_breakdown: Mapping[WorkStatus, CountShare]
    priority_breakdown: Mapping[TaskPriority, CountShare]


@dataclass(frozen=True, slots=True)
class ProjectProgress:
    progress_percentage: float
    simple_progress_percentage: float
    total_tasks: int
    status_breakdown: Mapping[WorkStatus, CountShare]
    priority_breakdown: Mapping[TaskPriority, CountShare]
    status_priority_matrix: Mapping[WorkStatus, Mapping[TaskPriority, CountShare]]
    phases: tuple[PhaseProgress, ...] = ()
    insights: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ProjectReport:
    """Read-only analytical snapshot of one project."""

    id: int
    public_id: UUID
    name: str
    start_datetime: datetime
    completion_datetime: datetime
    actual_completion_datetime: datetime | None
    status: WorkStatus
    worker_count: WorkerStatusBreakdown
    periodic_task_count: PeriodicTaskCount
    phases: tuple[Phase, ...]
    top_workers: tuple[WorkerScore, ...]
    progress: ProjectProgress
