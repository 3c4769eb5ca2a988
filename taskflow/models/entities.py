"""ORM entities for the Taskflow project store read by the report queries."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from taskflow.db.base import Base


class WorkStatus(str, enum.Enum):
    PENDING = "pending"
    ON_GOING = "onGoing"
    COMPLETED = "completed"
    DELAYED = "delayed"
    CANCELLED = "cancelled"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class WorkerStatus(str, enum.Enum):
    # Created but never linked to a project.
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    TERMINATED = "terminated"


class Role(str, enum.Enum):
    PROJECT_MANAGER = "projectManager"
    WORKER = "worker"


def _enum_column(enum_cls: type[enum.Enum], name: str) -> SQLEnum:
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


WORK_STATUS_TYPE = _enum_column(WorkStatus, "work_status")
WORKER_STATUS_TYPE = _enum_column(WorkerStatus, "worker_status")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    public_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    role: Mapped[Role] = mapped_column(_enum_column(Role, "user_role"), nullable=False, default=Role.WORKER)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (Index("ix_projects_manager_id", "manager_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    public_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4)
    manager_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    budget: Mapped[Decimal] = mapped_column(Numeric(21, 4), nullable=False, default=Decimal("0"))
    start_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completion_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    actual_completion_datetime: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[WorkStatus] = mapped_column(WORK_STATUS_TYPE, nullable=False, default=WorkStatus.PENDING)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class ProjectPhase(Base):
    __tablename__ = "project_phases"
    __table_args__ = (Index("ix_project_phases_project_id", "project_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    public_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    start_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completion_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    actual_completion_datetime: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[WorkStatus] = mapped_column(WORK_STATUS_TYPE, nullable=False, default=WorkStatus.PENDING)


class PhaseTask(Base):
    __tablename__ = "phase_tasks"
    __table_args__ = (Index("ix_phase_tasks_phase_id", "phase_id"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    public_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False, default=uuid.uuid4)
    phase_id: Mapped[int] = mapped_column(ForeignKey("project_phases.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    start_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completion_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    actual_completion_datetime: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    status: Mapped[WorkStatus] = mapped_column(WORK_STATUS_TYPE, nullable=False, default=WorkStatus.PENDING)
    priority: Mapped[TaskPriority] = mapped_column(
        _enum_column(TaskPriority, "task_priority"), nullable=False, default=TaskPriority.MEDIUM
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class PhaseTaskWorker(Base):
    __tablename__ = "phase_task_workers"
    __table_args__ = (
        Index("ix_phase_task_workers_task_id", "task_id"),
        Index("ix_phase_task_workers_worker_id", "worker_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    task_id: Mapped[int] = mapped_column(ForeignKey("phase_tasks.id"), nullable=False)
    worker_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[WorkerStatus] = mapped_column(WORKER_STATUS_TYPE, nullable=False, default=WorkerStatus.ASSIGNED)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class ProjectWorker(Base):
    __tablename__ = "project_workers"
    __table_args__ = (
        Index("ix_project_workers_project_id", "project_id"),
        UniqueConstraint("project_id", "worker_id", name="uq_project_workers_project_worker"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id"), nullable=False)
    worker_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[WorkerStatus] = mapped_column(WORKER_STATUS_TYPE, nullable=False, default=WorkerStatus.ASSIGNED)
