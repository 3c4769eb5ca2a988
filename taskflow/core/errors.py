"""Typed exceptions raised by the reporting engine.

Every exception carries a machine-readable ``code`` so callers can branch on
type or code instead of parsing messages. Store failures are not wrapped:
SQLAlchemy errors reach the caller unchanged.
"""

from __future__ import annotations

from typing import Any


class TaskflowError(Exception):
    """Base class for all reporting engine errors."""

    code: str = "TASKFLOW_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidIdentifierError(TaskflowError, ValueError):
    """A project identifier is syntactically invalid; no query was issued."""

    code = "INVALID_IDENTIFIER"

    def __init__(self, value: Any, reason: str) -> None:
        self.value = value
        super().__init__(f"Invalid project identifier {value!r}: {reason}")


class ReportDecodeError(TaskflowError):
    """Source data for a report cannot be decoded (data-integrity failure)."""

    code = "REPORT_DECODE_ERROR"

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Cannot decode {field}={value!r}: {reason}")
