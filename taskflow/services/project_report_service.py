"""Project report assembly and serialization."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from sqlalchemy.orm import Session

from taskflow.core.config import Settings, get_settings
from taskflow.core.logging import configure_from_settings, get_logger
from taskflow.db.dependencies import session_scope
from taskflow.domain.identifiers import ProjectPredicate, resolve_predicate
from taskflow.domain.report import Phase, ProjectReport, Task, WorkerScore, freeze
from taskflow.repositories.report_repository import ReportRepository
from taskflow.services.project_progress import calculate_project_progress
from taskflow.services.report_aggregates import aggregate_periodic_counts, aggregate_worker_status
from taskflow.services.report_hierarchy import build_project_tree
from taskflow.services.report_rows import (
    decode_periodic_rows,
    decode_project_row,
    decode_worker_task_rows,
    split_status_counts,
)
from taskflow.services.worker_performance import rank_workers

logger = get_logger(__name__)


class ReportQueryExecutor(Protocol):
    """Read-only queries a report is assembled from.

    The four fetches are independent; they are not required to observe a
    single snapshot of the store.
    """

    def fetch_project_tree(self, predicate: ProjectPredicate) -> Mapping[str, Any] | None: ...

    def fetch_worker_status_counts(self, predicate: ProjectPredicate) -> Mapping[str, Any] | None: ...

    def fetch_periodic_task_counts(self, predicate: ProjectPredicate) -> Sequence[Any]: ...

    def fetch_worker_task_rows(self, predicate: ProjectPredicate) -> Sequence[Mapping[str, Any]]: ...


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def _display(value: float) -> float:
    return round(value, 2)


class ProjectReportService:
    """Builds one immutable :class:`ProjectReport` per request."""

    def __init__(self, executor: ReportQueryExecutor, settings: Settings | None = None) -> None:
        self.executor = executor
        self.settings = settings or get_settings()

    def generate_report(self, identifier: object) -> ProjectReport | None:
        """Return the report for ``identifier`` or ``None`` when the project has no data.

        Raises ``InvalidIdentifierError`` before any query for a malformed
        identifier and ``ReportDecodeError`` for undecodable source data.
        Store errors propagate unchanged.
        """

        predicate = resolve_predicate(identifier)

        tree_row = self.executor.fetch_project_tree(predicate)
        status_row = self.executor.fetch_worker_status_counts(predicate)
        periodic_rows = self.executor.fetch_periodic_task_counts(predicate)
        worker_rows = self.executor.fetch_worker_task_rows(predicate)

        project = decode_project_row(tree_row)
        worker_records = decode_worker_task_rows(worker_rows)
        top_workers = rank_workers(
            worker_records,
            limit=self.settings.report_top_worker_limit,
            grace_days=self.settings.report_on_time_grace_days,
        )

        if project is None:
            if top_workers:
                # Project row vanished between fetches; its scalars cannot be filled.
                logger.warning(
                    "project_report_missing_project_row",
                    extra={"predicate_field": predicate.field, "worker_count": len(top_workers)},
                )
            else:
                logger.info("project_report_not_found", extra={"predicate_field": predicate.field})
            return None

        tree = build_project_tree(project, worker_records)
        if not tree.phases:
            logger.debug("project_report_without_phases", extra={"project_id": tree.id})
        if not top_workers:
            logger.debug("project_report_without_workers", extra={"project_id": tree.id})

        split = split_status_counts(status_row)
        worker_count = aggregate_worker_status(*split) if split is not None else freeze({})
        periodic_task_count = aggregate_periodic_counts(decode_periodic_rows(periodic_rows))

        report = ProjectReport(
            id=tree.id,
            public_id=tree.public_id,
            name=tree.name,
            start_datetime=tree.start_datetime,
            completion_datetime=tree.completion_datetime,
            actual_completion_datetime=tree.actual_completion_datetime,
            status=tree.status,
            worker_count=worker_count,
            periodic_task_count=periodic_task_count,
            phases=tree.phases,
            top_workers=top_workers,
            progress=calculate_project_progress(tree.phases),
        )
        logger.info(
            "project_report_generated",
            extra={
                "project_id": report.id,
                "phase_count": len(report.phases),
                "top_worker_count": len(report.top_workers),
            },
        )
        return report

    # ---------- Serialization ----------
    @staticmethod
    def serialize_task(task: Task) -> dict[str, object]:
        return {
            "id": task.id,
            "public_id": str(task.public_id),
            "name": task.name,
            "description": task.description,
            "priority": task.priority.value,
            "status": task.status.value,
            "start_datetime": task.start_datetime.isoformat(),
            "completion_datetime": task.completion_datetime.isoformat(),
            "actual_completion_datetime": _iso(task.actual_completion_datetime),
            "worker_ids": [str(worker.public_id) for worker in task.workers],
        }

    @classmethod
    def serialize_phase(cls, phase: Phase) -> dict[str, object]:
        return {
            "id": phase.id,
            "public_id": str(phase.public_id),
            "name": phase.name,
            "description": phase.description,
            "status": phase.status.value,
            "start_datetime": phase.start_datetime.isoformat(),
            "completion_datetime": phase.completion_datetime.isoformat(),
            "actual_completion_datetime": _iso(phase.actual_completion_datetime),
            "tasks": [cls.serialize_task(task) for task in phase.tasks],
        }

    @staticmethod
    def serialize_worker_score(score: WorkerScore) -> dict[str, object]:
        return {
            "id": score.worker_id,
            "public_id": str(score.public_id),
            "first_name": score.first_name,
            "middle_name": score.middle_name,
            "last_name": score.last_name,
            "email": score.email,
            "total_tasks": score.total_tasks,
            "completed_tasks": score.completed_tasks,
            "overall_score": score.overall_score,
            "performance_grade": score.performance_grade,
        }

    @classmethod
    def serialize_report(cls, report: ProjectReport) -> dict[str, object]:
        progress = report.progress
        return {
            "id": report.id,
            "public_id": str(report.public_id),
            "name": report.name,
            "start_datetime": report.start_datetime.isoformat(),
            "completion_datetime": report.completion_datetime.isoformat(),
            "actual_completion_datetime": _iso(report.actual_completion_datetime),
            "status": report.status.value,
            "worker_count": {
                status: {"count": share.count, "percentage": _display(share.percentage)}
                for status, share in report.worker_count.items()
            },
            "periodic_task_count": {
                str(year): {str(month): count for month, count in months.items()}
                for year, months in report.periodic_task_count.items()
            },
            "phases": [cls.serialize_phase(phase) for phase in report.phases],
            "top_workers": [cls.serialize_worker_score(score) for score in report.top_workers],
            "progress": {
                "progress_percentage": progress.progress_percentage,
                "simple_progress_percentage": progress.simple_progress_percentage,
                "total_tasks": progress.total_tasks,
                "status_breakdown": {
                    status.value: {"count": share.count, "percentage": share.percentage}
                    for status, share in progress.status_breakdown.items()
                },
                "priority_breakdown": {
                    priority.value: {"count": share.count, "percentage": share.percentage}
                    for priority, share in progress.priority_breakdown.items()
                },
                "status_priority_matrix": {
                    status.value: {
                        priority.value: {"count": share.count, "percentage": share.percentage}
                        for priority, share in row.items()
                    }
                    for status, row in progress.status_priority_matrix.items()
                },
                "insights": list(progress.insights),
                "recommendations": list(progress.recommendations),
                "phases": [
                    {
                        "phase_id": item.phase_id,
                        "phase_name": item.phase_name,
                        "total_tasks": item.total_tasks,
                        "completed_tasks": item.completed_tasks,
                        "weighted_progress": item.weighted_progress,
                        "simple_progress": item.simple_progress,
                    }
                    for item in progress.phases
                ],
            },
        }


def generate_project_report(
    identifier: object,
    *,
    session: Session | None = None,
    settings: Settings | None = None,
) -> ProjectReport | None:
    """Generate a report against the configured store.

    Logging is configured from ``settings`` on first use; a host application
    that configured the ``taskflow`` logger earlier keeps its setup.
    """

    settings = settings or get_settings()
    configure_from_settings(settings)

    if session is not None:
        return ProjectReportService(ReportRepository(session), settings).generate_report(identifier)

    with session_scope() as scoped_session:
        return ProjectReportService(ReportRepository(scoped_session), settings).generate_report(identifier)
