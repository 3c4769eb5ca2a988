from __future__ import annotations

from collections.abc import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskflow.core.config import Settings
from taskflow.core.logging import reset_logging
from taskflow.db.base import Base
import taskflow.models.entities  # noqa: F401
from taskflow.models.entities import PhaseTask, PhaseTaskWorker, Project, ProjectPhase, ProjectWorker, User

TEST_TABLES = [
    User.__table__,
    Project.__table__,
    ProjectPhase.__table__,
    PhaseTask.__table__,
    PhaseTaskWorker.__table__,
    ProjectWorker.__table__,
]


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+pysqlite:///:memory:",
        log_json=True,
        report_top_worker_limit=10,
        report_on_time_grace_days=1,
    )


@pytest.fixture(autouse=True)
def _isolated_logging() -> Generator[None, None, None]:
    reset_logging()
    yield
    reset_logging()
