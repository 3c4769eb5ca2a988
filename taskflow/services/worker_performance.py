"""Weighted worker performance scoring and ranking.

Each task assigned to a worker contributes ``priority weight x status/timeliness
multiplier``. The score normalizes that sum against the best case, every task
completed early, so it always falls in ``[0, 100]``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from taskflow.core.logging import get_logger
from taskflow.domain.report import WorkerScore
from taskflow.models.entities import TaskPriority, WorkStatus
from taskflow.services.report_hierarchy import decode_token
from taskflow.services.report_rows import WorkerTaskRecord

logger = get_logger(__name__)

PRIORITY_WEIGHTS: dict[TaskPriority, float] = {
    TaskPriority.HIGH: 5.0,
    TaskPriority.MEDIUM: 3.0,
    TaskPriority.LOW: 1.0,
}
DEFAULT_PRIORITY_WEIGHT = 1.0

# Completed tasks are scored by timeliness instead.
STATUS_MULTIPLIERS: dict[WorkStatus, float] = {
    WorkStatus.ON_GOING: 0.5,
    WorkStatus.DELAYED: 0.3,
    WorkStatus.PENDING: 0.0,
    WorkStatus.CANCELLED: 0.0,
}

EARLY_COMPLETION_BONUS = 1.2
ON_TIME_MULTIPLIER = 1.0
LATE_PENALTY = 0.8

DEFAULT_TOP_WORKER_LIMIT = 10
Q2 = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class TaskScore:
    weighted_score: float
    max_possible_score: float


def _q2(value: float) -> float:
    return float(Decimal(repr(value)).quantize(Q2, rounding=ROUND_HALF_UP))


def priority_weight(priority: str | None) -> float:
    # Legacy or unknown priorities count as low.
    return PRIORITY_WEIGHTS.get(priority, DEFAULT_PRIORITY_WEIGHT)


def task_multiplier(
    status: str | None,
    completion_datetime: datetime | None,
    actual_completion_datetime: datetime | None,
    *,
    grace: timedelta = timedelta(days=1),
) -> float:
    if status != WorkStatus.COMPLETED:
        return STATUS_MULTIPLIERS.get(status, 0.0)
    if actual_completion_datetime is None or completion_datetime is None:
        return ON_TIME_MULTIPLIER
    if actual_completion_datetime < completion_datetime:
        return EARLY_COMPLETION_BONUS
    if actual_completion_datetime <= completion_datetime + grace:
        return ON_TIME_MULTIPLIER
    return LATE_PENALTY


def score_task(record: WorkerTaskRecord, *, grace: timedelta = timedelta(days=1)) -> TaskScore:
    weight = priority_weight(record.task_priority)
    multiplier = task_multiplier(
        record.task_status,
        record.task_completion_datetime,
        record.task_actual_completion_datetime,
        grace=grace,
    )
    return TaskScore(
        weighted_score=weight * multiplier,
        max_possible_score=weight * EARLY_COMPLETION_BONUS,
    )


def calculate_overall_score(task_scores: Iterable[TaskScore]) -> float | None:
    """Return the 0-100 score, or ``None`` when there is nothing to score."""

    total = 0.0
    maximum = 0.0
    for task_score in task_scores:
        total += task_score.weighted_score
        maximum += task_score.max_possible_score
    if maximum <= 0:
        return None
    return _q2(total / maximum * 100)


def score_workers(
    records: Iterable[WorkerTaskRecord],
    *,
    grace_days: int = 1,
) -> list[WorkerScore]:
    """Score every worker holding at least one task, in first-seen order."""

    grace = timedelta(days=grace_days)
    workers: dict[int, WorkerTaskRecord] = {}
    tasks_by_worker: dict[int, dict[int, WorkerTaskRecord]] = {}
    for record in records:
        workers.setdefault(record.worker_id, record)
        tasks = tasks_by_worker.setdefault(record.worker_id, {})
        if record.task_id is not None:
            # A task reassigned to the same worker is still one task.
            tasks.setdefault(record.task_id, record)

    scores: list[WorkerScore] = []
    for worker_id, worker in workers.items():
        tasks = tasks_by_worker[worker_id]
        overall = calculate_overall_score(score_task(task, grace=grace) for task in tasks.values())
        if overall is None:
            logger.debug("worker_without_tasks_excluded", extra={"worker_id": worker_id})
            continue
        scores.append(
            WorkerScore(
                worker_id=worker_id,
                public_id=decode_token(worker.worker_public_id, "worker_public_id"),
                first_name=worker.first_name,
                middle_name=worker.middle_name,
                last_name=worker.last_name,
                email=worker.email,
                total_tasks=len(tasks),
                completed_tasks=sum(1 for task in tasks.values() if task.task_status == WorkStatus.COMPLETED),
                overall_score=overall,
            )
        )
    return scores


def rank_workers(
    records: Iterable[WorkerTaskRecord],
    *,
    limit: int = DEFAULT_TOP_WORKER_LIMIT,
    grace_days: int = 1,
) -> tuple[WorkerScore, ...]:
    """Top ``limit`` workers by score, descending; ties keep input order."""

    scores = score_workers(records, grace_days=grace_days)
    ranked = sorted(scores, key=lambda score: score.overall_score, reverse=True)
    return tuple(ranked[:limit])
