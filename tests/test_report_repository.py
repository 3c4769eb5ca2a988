from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import Session, sessionmaker

from taskflow.core.config import Settings
from taskflow.core.logging import StructuredFormatter
from taskflow.domain.identifiers import ProjectPredicate
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
from taskflow.repositories.report_repository import ReportRepository
from taskflow.services.project_report_service import generate_project_report


def _create_user(db: Session, *, first_name: str, last_name: str, role: Role = Role.WORKER) -> User:
    row = User(
        first_name=first_name,
        last_name=last_name,
        email=f"{first_name.lower()}.{last_name.lower()}@example.com",
        role=role,
    )
    db.add(row)
    db.flush()
    return row


def _create_phase(db: Session, project: Project, *, name: str, start: datetime) -> ProjectPhase:
    row = ProjectPhase(
        project_id=project.id,
        name=name,
        start_datetime=start,
        completion_datetime=start + timedelta(days=30),
        status=WorkStatus.ON_GOING,
    )
    db.add(row)
    db.flush()
    return row


def _create_task(
    db: Session,
    phase: ProjectPhase,
    *,
    name: str,
    start: datetime,
    created_at: datetime,
    status: WorkStatus = WorkStatus.PENDING,
    priority: TaskPriority = TaskPriority.MEDIUM,
    actual: datetime | None = None,
) -> PhaseTask:
    row = PhaseTask(
        phase_id=phase.id,
        name=name,
        start_datetime=start,
        completion_datetime=start + timedelta(days=5),
        actual_completion_datetime=actual,
        status=status,
        priority=priority,
        created_at=created_at,
    )
    db.add(row)
    db.flush()
    return row


def _link(db: Session, task: PhaseTask, worker: User, status: WorkerStatus = WorkerStatus.ASSIGNED) -> None:
    db.add(PhaseTaskWorker(task_id=task.id, worker_id=worker.id, status=status))
    db.flush()


def _seed_project(db: Session) -> Project:
    manager = _create_user(db, first_name="Maya", last_name="Manager", role=Role.PROJECT_MANAGER)
    project = Project(
        manager_id=manager.id,
        name="Apollo",
        start_datetime=datetime(2024, 1, 1),
        completion_datetime=datetime(2024, 6, 30),
        status=WorkStatus.ON_GOING,
    )
    db.add(project)
    db.flush()

    # Inserted out of chronological order on purpose.
    build = _create_phase(db, project, name="Build", start=datetime(2024, 2, 1))
    design = _create_phase(db, project, name="Design", start=datetime(2024, 1, 1))
    _create_phase(db, project, name="Launch", start=datetime(2024, 5, 1))

    wire = _create_task(
        db, design, name="Wireframes", start=datetime(2024, 1, 10), created_at=datetime(2024, 1, 3),
        status=WorkStatus.COMPLETED, priority=TaskPriority.HIGH, actual=datetime(2024, 1, 12),
    )
    brief = _create_task(
        db, design, name="Brief", start=datetime(2024, 1, 2), created_at=datetime(2024, 1, 2),
        status=WorkStatus.COMPLETED, priority=TaskPriority.LOW, actual=datetime(2024, 1, 6),
    )
    api = _create_task(
        db, build, name="API", start=datetime(2024, 2, 3), created_at=datetime(2024, 2, 1),
        status=WorkStatus.ON_GOING, priority=TaskPriority.HIGH,
    )
    _create_task(
        db, build, name="Docs", start=datetime(2024, 2, 5), created_at=datetime(2024, 1, 20),
        status=WorkStatus.DELAYED, priority=TaskPriority.MEDIUM,
    )

    zoe = _create_user(db, first_name="Zoe", last_name="Adams")
    ben = _create_user(db, first_name="Ben", last_name="Young")
    idle = _create_user(db, first_name="Ivy", last_name="Idle")
    gone = _create_user(db, first_name="Tom", last_name="Gone")
    db.add_all(
        [
            ProjectWorker(project_id=project.id, worker_id=zoe.id, status=WorkerStatus.ASSIGNED),
            ProjectWorker(project_id=project.id, worker_id=ben.id, status=WorkerStatus.ASSIGNED),
            ProjectWorker(project_id=project.id, worker_id=idle.id, status=WorkerStatus.ASSIGNED),
            ProjectWorker(project_id=project.id, worker_id=gone.id, status=WorkerStatus.TERMINATED),
        ]
    )
    _link(db, wire, zoe)
    _link(db, brief, zoe)
    _link(db, api, ben)
    _link(db, brief, idle, WorkerStatus.TERMINATED)
    db.commit()
    return project


def _predicate(project: Project) -> ProjectPredicate:
    return ProjectPredicate(field="id", value=project.id)


def test_project_tree_orders_phases_and_tasks_chronologically(db_session: Session) -> None:
    project = _seed_project(db_session)

    row = ReportRepository(db_session).fetch_project_tree(_predicate(project))

    assert row is not None
    assert row["name"] == "Apollo"
    assert row["public_id"] == project.public_id.hex
    phases = json.loads(row["phases"])
    assert [phase["name"] for phase in phases] == ["Design", "Build", "Launch"]
    assert [task["name"] for task in json.loads(phases[0]["tasks"])] == ["Brief", "Wireframes"]
    assert json.loads(phases[2]["tasks"]) == []


def test_project_tree_by_public_token(db_session: Session) -> None:
    project = _seed_project(db_session)

    row = ReportRepository(db_session).fetch_project_tree(
        ProjectPredicate(field="public_id", value=project.public_id)
    )

    assert row is not None
    assert row["id"] == project.id


def test_worker_status_counts(db_session: Session) -> None:
    project = _seed_project(db_session)

    counts = ReportRepository(db_session).fetch_worker_status_counts(_predicate(project))

    assert counts == {"assigned": 3, "terminated": 1, "unassigned": 1, "total": 4}


def test_periodic_task_counts_group_by_creation_month(db_session: Session) -> None:
    project = _seed_project(db_session)

    rows = ReportRepository(db_session).fetch_periodic_task_counts(_predicate(project))

    totals: dict[tuple[int, int], int] = {}
    for year, month, count in rows:
        totals[(year, month)] = totals.get((year, month), 0) + count
    assert totals == {(2024, 1): 3, (2024, 2): 1}


def test_worker_task_rows_are_ordered_by_name(db_session: Session) -> None:
    project = _seed_project(db_session)

    rows = ReportRepository(db_session).fetch_worker_task_rows(_predicate(project))

    assert [row["last_name"] for row in rows] == ["Adams", "Adams", "Idle", "Young"]
    assert rows[0]["task_priority"] in {"high", "low"}
    assert rows[-1]["task_status"] == "onGoing"


def test_missing_project_yields_empty_results(db_session: Session) -> None:
    repository = ReportRepository(db_session)
    predicate = ProjectPredicate(field="id", value=999)

    assert repository.fetch_project_tree(predicate) is None
    assert repository.fetch_worker_status_counts(predicate) is None
    assert repository.fetch_periodic_task_counts(predicate) == []
    assert repository.fetch_worker_task_rows(predicate) == []


def test_generate_project_report_against_store(db_session: Session, settings: Settings) -> None:
    project = _seed_project(db_session)

    report = generate_project_report(str(project.public_id), session=db_session, settings=settings)

    assert report is not None
    assert [phase.name for phase in report.phases] == ["Design", "Build", "Launch"]
    assert report.worker_count["assigned"].percentage == 75.0
    assert {year: dict(months) for year, months in report.periodic_task_count.items()} == {2024: {1: 3, 2: 1}}
    assert [score.last_name for score in report.top_workers][0] == "Adams"
    assert report.top_workers[0].overall_score == 100.0
    assert report.phases[0].tasks[0].workers[0].last_name in {"Adams", "Idle"}


def test_generate_project_report_unknown_project(db_session: Session, settings: Settings) -> None:
    assert generate_project_report(12345, session=db_session, settings=settings) is None


def test_generate_project_report_opens_its_own_session(
    db_session: Session, settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    import taskflow.db.session as session_module

    project = _seed_project(db_session)
    monkeypatch.setattr(
        session_module,
        "SessionLocal",
        sessionmaker(bind=db_session.get_bind(), autoflush=False, autocommit=False, future=True),
    )

    report = generate_project_report(project.id, settings=settings)

    assert report is not None
    assert report.name == "Apollo"


def test_generate_project_report_applies_logging_settings(db_session: Session, settings: Settings) -> None:
    quiet = settings.model_copy(update={"log_level": "WARNING", "log_json": False})

    generate_project_report(12345, session=db_session, settings=quiet)
    generate_project_report(12345, session=db_session, settings=quiet)

    taskflow_logger = logging.getLogger("taskflow")
    assert taskflow_logger.level == logging.WARNING
    assert len(taskflow_logger.handlers) == 1
    assert not isinstance(taskflow_logger.handlers[0].formatter, StructuredFormatter)
