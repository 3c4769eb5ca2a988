"""Session scope helpers for report generation."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.orm import Session


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Yield a read-only SQLAlchemy session; the transaction is rolled back on exit."""

    from taskflow.db.session import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
