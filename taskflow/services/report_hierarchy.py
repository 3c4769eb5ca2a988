"""Assembly of the Project -> Phase -> Task tree from decoded records."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import TypeVar
from uuid import UUID

from taskflow.core.errors import ReportDecodeError
from taskflow.domain.identifiers import decode_public_token
from taskflow.domain.report import Phase, ProjectTree, Task, WorkerRef
from taskflow.models.entities import TaskPriority, WorkStatus
from taskflow.services.report_rows import PhaseRecord, ProjectRecord, TaskRecord, WorkerTaskRecord

E = TypeVar("E", bound=enum.Enum)


def decode_enum(enum_cls: type[E], value: object, field: str) -> E:
    """Map a stored string onto ``enum_cls``; unknown values signal a schema mismatch."""

    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ReportDecodeError(field, value, f"unknown {enum_cls.__name__} value") from exc


def decode_token(value: str | bytes | UUID, field: str) -> UUID:
    try:
        return decode_public_token(value)
    except ValueError as exc:
        raise ReportDecodeError(field, value, "malformed public token") from exc


def index_task_workers(records: Iterable[WorkerTaskRecord]) -> dict[int, tuple[WorkerRef, ...]]:
    """Group worker references by task id.

    Each worker gets one :class:`WorkerRef` shared by every task it is linked
    to; repeated links between the same worker and task collapse to one.
    """

    refs: dict[int, WorkerRef] = {}
    by_task: dict[int, list[WorkerRef]] = {}
    for record in records:
        ref = refs.get(record.worker_id)
        if ref is None:
            ref = WorkerRef(
                id=record.worker_id,
                public_id=decode_token(record.worker_public_id, "worker_public_id"),
                first_name=record.first_name,
                middle_name=record.middle_name,
                last_name=record.last_name,
                email=record.email,
            )
            refs[record.worker_id] = ref
        if record.task_id is None:
            continue
        linked = by_task.setdefault(record.task_id, [])
        if ref not in linked:
            linked.append(ref)
    return {task_id: tuple(workers) for task_id, workers in by_task.items()}


def build_task(record: TaskRecord, workers: tuple[WorkerRef, ...] = ()) -> Task:
    return Task(
        id=record.id,
        public_id=decode_token(record.public_id, "task.public_id"),
        name=record.name,
        description=record.description,
        priority=decode_enum(TaskPriority, record.priority, "task.priority"),
        status=decode_enum(WorkStatus, record.status, "task.status"),
        start_datetime=record.start_datetime,
        completion_datetime=record.completion_datetime,
        actual_completion_datetime=record.actual_completion_datetime,
        workers=workers,
    )


def build_phase(record: PhaseRecord, task_workers: dict[int, tuple[WorkerRef, ...]] | None = None) -> Phase:
    task_workers = task_workers or {}
    return Phase(
        id=record.id,
        public_id=decode_token(record.public_id, "phase.public_id"),
        name=record.name,
        description=record.description,
        status=decode_enum(WorkStatus, record.status, "phase.status"),
        start_datetime=record.start_datetime,
        completion_datetime=record.completion_datetime,
        actual_completion_datetime=record.actual_completion_datetime,
        # Source order is chronological already; never re-sort here.
        tasks=tuple(build_task(task, task_workers.get(task.id, ())) for task in record.tasks),
    )


def build_project_tree(
    record: ProjectRecord,
    worker_records: Iterable[WorkerTaskRecord] = (),
) -> ProjectTree:
    task_workers = index_task_workers(worker_records)
    return ProjectTree(
        id=record.id,
        public_id=decode_token(record.public_id, "project.public_id"),
        name=record.name,
        status=decode_enum(WorkStatus, record.status, "project.status"),
        start_datetime=record.start_datetime,
        completion_datetime=record.completion_datetime,
        actual_completion_datetime=record.actual_completion_datetime,
        phases=tuple(build_phase(phase, task_workers) for phase in record.phases),
    )
