"""Decoding of raw report query rows into typed intermediate records.

The project-tree row carries its phases, and each phase its tasks, as nested
collections serialized to JSON text by the query layer. Decoding is a pure
parse step: it never touches the store, so it can be fed literal payloads.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from taskflow.core.errors import ReportDecodeError
from taskflow.core.logging import get_logger

logger = get_logger(__name__)

TOTAL_KEY = "total"


def decode_nested(value: Any, field: str) -> list[Any]:
    """Parse a nested collection; absent or empty payloads yield ``[]``."""

    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ReportDecodeError(field, value, f"malformed JSON payload ({exc.msg})") from exc
        if value is None:
            return []
    if isinstance(value, (list, tuple)):
        return list(value)
    raise ReportDecodeError(field, value, "expected an ordered collection")


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class TaskRecord(_Record):
    id: int
    public_id: str | bytes | UUID
    name: str
    description: str | None = None
    status: str
    priority: str
    start_datetime: datetime
    completion_datetime: datetime
    actual_completion_datetime: datetime | None = None


class PhaseRecord(_Record):
    id: int
    public_id: str | bytes | UUID
    name: str
    description: str | None = None
    status: str
    start_datetime: datetime
    completion_datetime: datetime
    actual_completion_datetime: datetime | None = None
    tasks: tuple[TaskRecord, ...] = ()

    @field_validator("tasks", mode="before")
    @classmethod
    def parse_tasks(cls, value: Any) -> list[Any]:
        return decode_nested(value, "tasks")


class ProjectRecord(_Record):
    id: int
    public_id: str | bytes | UUID
    name: str
    status: str
    start_datetime: datetime
    completion_datetime: datetime
    actual_completion_datetime: datetime | None = None
    phases: tuple[PhaseRecord, ...] = ()

    @field_validator("phases", mode="before")
    @classmethod
    def parse_phases(cls, value: Any) -> list[Any]:
        return decode_nested(value, "phases")


class WorkerTaskRecord(_Record):
    """One worker-to-task link; task fields are empty for workers without tasks."""

    worker_id: int
    worker_public_id: str | bytes | UUID
    first_name: str
    middle_name: str | None = None
    last_name: str
    email: str | None = None
    task_id: int | None = None
    task_priority: str | None = None
    task_status: str | None = None
    task_completion_datetime: datetime | None = None
    task_actual_completion_datetime: datetime | None = None


def _decode_error(exc: ValidationError, source: Any) -> ReportDecodeError:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "row"
    return ReportDecodeError(field, first.get("input", source), first.get("msg", str(exc)))


def decode_project_row(row: Mapping[str, Any] | None) -> ProjectRecord | None:
    if not row:
        return None
    try:
        record = ProjectRecord.model_validate(dict(row))
    except ValidationError as exc:
        raise _decode_error(exc, row) from exc
    logger.debug(
        "project_row_decoded",
        extra={"project_id": record.id, "phase_count": len(record.phases)},
    )
    return record


def decode_worker_task_rows(rows: Iterable[Mapping[str, Any]] | None) -> list[WorkerTaskRecord]:
    records: list[WorkerTaskRecord] = []
    for row in rows or ():
        try:
            records.append(WorkerTaskRecord.model_validate(dict(row)))
        except ValidationError as exc:
            raise _decode_error(exc, row) from exc
    return records


def _as_count(field: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ReportDecodeError(field, value, "expected a non-negative integer")
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ReportDecodeError(field, value, "expected a non-negative integer") from exc
    if count < 0 or (isinstance(value, (float, Decimal)) and value != count):
        raise ReportDecodeError(field, value, "expected a non-negative integer")
    return count


def split_status_counts(row: Mapping[str, Any] | None) -> tuple[dict[str, int], int] | None:
    """Separate the ``total`` denominator from per-status counts."""

    if not row:
        return None
    if TOTAL_KEY not in row:
        raise ReportDecodeError(TOTAL_KEY, None, "worker status counts carry no total")
    counts = {str(key): _as_count(str(key), value) for key, value in row.items() if key != TOTAL_KEY}
    return counts, _as_count(TOTAL_KEY, row[TOTAL_KEY])


def decode_periodic_rows(rows: Iterable[Any] | None) -> list[tuple[int, int, int]]:
    """Normalize ``(year, month, count)`` rows given as tuples or mappings."""

    buckets: list[tuple[int, int, int]] = []
    for row in rows or ():
        if isinstance(row, Mapping):
            values = (row.get("year"), row.get("month"), row.get("count"))
        else:
            values = tuple(row)
            if len(values) != 3:
                raise ReportDecodeError("periodic_row", row, "expected (year, month, count)")
        year = _as_count("year", values[0])
        month = _as_count("month", values[1])
        count = _as_count("count", values[2])
        if not 1 <= month <= 12:
            raise ReportDecodeError("month", month, "month must be between 1 and 12")
        buckets.append((year, month, count))
    return buckets
