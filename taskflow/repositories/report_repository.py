"""SQLAlchemy queries feeding project report generation."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import and_, case, extract, func, select
from sqlalchemy.orm import Session

from taskflow.domain.identifiers import ProjectPredicate
from taskflow.models.entities import (
    PhaseTask,
    PhaseTaskWorker,
    Project,
    ProjectPhase,
    ProjectWorker,
    User,
    WorkerStatus,
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class ReportRepository:
    """Read-only report queries, all issued through the caller's session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    @staticmethod
    def _matches(predicate: ProjectPredicate):
        column = Project.id if predicate.field == "id" else Project.public_id
        return column == predicate.value

    def _project_id(self, predicate: ProjectPredicate) -> int | None:
        return self.db.scalar(select(Project.id).where(self._matches(predicate)))

    # ---------- Project tree ----------
    def fetch_project_tree(self, predicate: ProjectPredicate) -> dict[str, Any] | None:
        """Project scalars plus phases and their tasks as nested JSON text."""

        project = self.db.scalar(select(Project).where(self._matches(predicate)))
        if project is None:
            return None
        project_id = project.id

        phases = self.db.scalars(
            select(ProjectPhase)
            .where(ProjectPhase.project_id == project_id)
            .order_by(ProjectPhase.start_datetime.asc(), ProjectPhase.id.asc())
        ).all()
        tasks = self.db.scalars(
            select(PhaseTask)
            .join(ProjectPhase, ProjectPhase.id == PhaseTask.phase_id)
            .where(ProjectPhase.project_id == project_id)
            .order_by(PhaseTask.start_datetime.asc(), PhaseTask.id.asc())
        ).all()

        tasks_by_phase: dict[int, list[dict[str, Any]]] = {}
        for task in tasks:
            tasks_by_phase.setdefault(task.phase_id, []).append(
                {
                    "id": task.id,
                    "public_id": task.public_id.hex,
                    "name": task.name,
                    "description": task.description,
                    "status": task.status.value,
                    "priority": task.priority.value,
                    "start_datetime": _iso(task.start_datetime),
                    "completion_datetime": _iso(task.completion_datetime),
                    "actual_completion_datetime": _iso(task.actual_completion_datetime),
                }
            )

        phase_payload = [
            {
                "id": phase.id,
                "public_id": phase.public_id.hex,
                "name": phase.name,
                "description": phase.description,
                "status": phase.status.value,
                "start_datetime": _iso(phase.start_datetime),
                "completion_datetime": _iso(phase.completion_datetime),
                "actual_completion_datetime": _iso(phase.actual_completion_datetime),
                "tasks": json.dumps(tasks_by_phase.get(phase.id, [])),
            }
            for phase in phases
        ]

        return {
            "id": project.id,
            "public_id": project.public_id.hex,
            "name": project.name,
            "status": project.status.value,
            "start_datetime": project.start_datetime,
            "completion_datetime": project.completion_datetime,
            "actual_completion_datetime": project.actual_completion_datetime,
            "phases": json.dumps(phase_payload),
        }

    # ---------- Worker status counts ----------
    def fetch_worker_status_counts(self, predicate: ProjectPredicate) -> dict[str, int] | None:
        """Project-worker links by status.

        ``unassigned`` counts workers still assigned to the project but holding
        no active task link in it, so it overlaps ``assigned``.
        """

        project_id = self._project_id(predicate)
        if project_id is None:
            return None

        has_active_task = (
            select(PhaseTaskWorker.id)
            .join(PhaseTask, PhaseTask.id == PhaseTaskWorker.task_id)
            .join(ProjectPhase, ProjectPhase.id == PhaseTask.phase_id)
            .where(
                and_(
                    ProjectPhase.project_id == ProjectWorker.project_id,
                    PhaseTaskWorker.worker_id == ProjectWorker.worker_id,
                    PhaseTaskWorker.status == WorkerStatus.ASSIGNED,
                )
            )
            .exists()
        )
        is_assigned = ProjectWorker.status == WorkerStatus.ASSIGNED

        row = self.db.execute(
            select(
                func.coalesce(func.sum(case((is_assigned, 1), else_=0)), 0).label("assigned"),
                func.coalesce(
                    func.sum(case((ProjectWorker.status == WorkerStatus.TERMINATED, 1), else_=0)), 0
                ).label("terminated"),
                func.coalesce(func.sum(case((and_(is_assigned, ~has_active_task), 1), else_=0)), 0).label(
                    "unassigned"
                ),
                func.count(ProjectWorker.id).label("total"),
            ).where(ProjectWorker.project_id == project_id)
        ).one()

        return {
            WorkerStatus.ASSIGNED.value: int(row.assigned),
            WorkerStatus.TERMINATED.value: int(row.terminated),
            WorkerStatus.UNASSIGNED.value: int(row.unassigned),
            "total": int(row.total),
        }

    # ---------- Periodic task counts ----------
    def fetch_periodic_task_counts(self, predicate: ProjectPredicate) -> list[tuple[int, int, int]]:
        """Tasks created per (year, month), one row per phase and month."""

        project_id = self._project_id(predicate)
        if project_id is None:
            return []

        year = extract("year", PhaseTask.created_at).label("year")
        month = extract("month", PhaseTask.created_at).label("month")
        rows = self.db.execute(
            select(year, month, func.count(PhaseTask.id).label("count"))
            .join(ProjectPhase, ProjectPhase.id == PhaseTask.phase_id)
            .where(ProjectPhase.project_id == project_id)
            .group_by(ProjectPhase.id, year, month)
            .order_by(year.asc(), month.asc())
        ).all()
        return [(int(row.year), int(row.month), int(row.count)) for row in rows]

    # ---------- Worker task rows ----------
    def fetch_worker_task_rows(self, predicate: ProjectPredicate) -> list[dict[str, Any]]:
        """One row per worker-to-task link inside the project."""

        project_id = self._project_id(predicate)
        if project_id is None:
            return []

        rows = self.db.execute(
            select(
                User.id.label("worker_id"),
                User.public_id.label("worker_public_id"),
                User.first_name,
                User.middle_name,
                User.last_name,
                User.email,
                PhaseTask.id.label("task_id"),
                PhaseTask.priority.label("task_priority"),
                PhaseTask.status.label("task_status"),
                PhaseTask.completion_datetime.label("task_completion_datetime"),
                PhaseTask.actual_completion_datetime.label("task_actual_completion_datetime"),
            )
            .select_from(PhaseTaskWorker)
            .join(User, User.id == PhaseTaskWorker.worker_id)
            .join(PhaseTask, PhaseTask.id == PhaseTaskWorker.task_id)
            .join(ProjectPhase, ProjectPhase.id == PhaseTask.phase_id)
            .where(ProjectPhase.project_id == project_id)
            .order_by(User.last_name.asc(), User.first_name.asc(), User.id.asc(), PhaseTask.id.asc())
        ).all()

        return [
            {
                **row._asdict(),
                "task_priority": row.task_priority.value,
                "task_status": row.task_status.value,
            }
            for row in rows
        ]
