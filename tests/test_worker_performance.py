from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import pytest

from taskflow.domain.report import WorkerScore
from taskflow.services.report_rows import WorkerTaskRecord
from taskflow.services.worker_performance import (
    EARLY_COMPLETION_BONUS,
    LATE_PENALTY,
    ON_TIME_MULTIPLIER,
    calculate_overall_score,
    priority_weight,
    rank_workers,
    score_task,
    score_workers,
    task_multiplier,
)

DUE = datetime(2024, 3, 1, 17, 0)


def _record(
    worker_id: int,
    task_id: int | None,
    *,
    status: str | None = "completed",
    priority: str | None = "high",
    completed: datetime | None = DUE - timedelta(days=2),
    public_id: str | None = None,
) -> WorkerTaskRecord:
    return WorkerTaskRecord(
        worker_id=worker_id,
        worker_public_id=public_id or uuid.UUID(int=worker_id).hex,
        first_name=f"First{worker_id}",
        last_name=f"Last{worker_id}",
        email=f"w{worker_id}@example.com",
        task_id=task_id,
        task_priority=priority if task_id is not None else None,
        task_status=status if task_id is not None else None,
        task_completion_datetime=DUE if task_id is not None else None,
        task_actual_completion_datetime=completed if task_id is not None else None,
    )


def test_priority_weights_default_unknown_to_low() -> None:
    assert priority_weight("high") == 5.0
    assert priority_weight("medium") == 3.0
    assert priority_weight("low") == 1.0
    assert priority_weight("urgent") == 1.0
    assert priority_weight(None) == 1.0


@pytest.mark.parametrize(
    ("status", "actual", "expected"),
    [
        ("completed", DUE - timedelta(hours=1), EARLY_COMPLETION_BONUS),
        ("completed", DUE, ON_TIME_MULTIPLIER),
        ("completed", DUE + timedelta(hours=23), ON_TIME_MULTIPLIER),
        ("completed", DUE + timedelta(days=2), LATE_PENALTY),
        ("completed", None, ON_TIME_MULTIPLIER),
        ("onGoing", None, 0.5),
        ("delayed", None, 0.3),
        ("pending", None, 0.0),
        ("cancelled", None, 0.0),
        ("mystery", None, 0.0),
    ],
)
def test_task_multiplier(status: str, actual: datetime | None, expected: float) -> None:
    assert task_multiplier(status, DUE, actual) == expected


def test_zero_grace_makes_any_delay_late() -> None:
    assert task_multiplier("completed", DUE, DUE + timedelta(minutes=1), grace=timedelta(0)) == LATE_PENALTY


def test_all_tasks_completed_early_scores_one_hundred() -> None:
    records = [_record(1, 10, priority="high"), _record(1, 11, priority="low")]

    (score,) = score_workers(records)

    assert score.overall_score == 100.0
    assert score.total_tasks == 2
    assert score.completed_tasks == 2
    assert score.performance_grade == "A+ (Exceptional)"


def test_mixed_tasks_score_is_normalized_and_rounded() -> None:
    records = [
        _record(1, 10, priority="high", completed=DUE),  # 5 * 1.0
        _record(1, 11, priority="medium", status="onGoing", completed=None),  # 3 * 0.5
        _record(1, 12, priority="low", status="pending", completed=None),  # 1 * 0
    ]

    (score,) = score_workers(records)

    # 6.5 / ((5 + 3 + 1) * 1.2) * 100
    assert score.overall_score == 60.19
    assert score.completed_tasks == 1
    assert score.performance_grade == "D+ (Below Average)"


def test_scores_stay_within_bounds() -> None:
    statuses = ["completed", "onGoing", "delayed", "pending", "cancelled"]
    records = [
        _record(worker_id, worker_id * 10 + index, status=status, completed=DUE + timedelta(days=worker_id - 3))
        for worker_id in range(1, 6)
        for index, status in enumerate(statuses[: worker_id])
    ]

    for score in score_workers(records):
        assert 0.0 <= score.overall_score <= 100.0


def test_workers_without_tasks_are_excluded() -> None:
    records = [_record(1, None), _record(2, 20)]

    scores = score_workers(records)

    assert [score.worker_id for score in scores] == [2]


def test_duplicate_links_count_once() -> None:
    records = [_record(1, 10), _record(1, 10), _record(1, 11, status="pending", completed=None)]

    (score,) = score_workers(records)

    assert score.total_tasks == 2


def test_overall_score_none_without_scorable_tasks() -> None:
    assert calculate_overall_score([]) is None
    assert score_task(_record(1, 10)).max_possible_score == 5.0 * EARLY_COMPLETION_BONUS


def test_rank_workers_truncates_to_limit_and_sorts_descending() -> None:
    records = []
    for worker_id in range(1, 15):
        status = "completed" if worker_id % 2 else "onGoing"
        records.append(_record(worker_id, worker_id * 100, status=status, completed=DUE - timedelta(days=1)))

    ranked = rank_workers(records)

    assert len(ranked) == 10
    scores = [score.overall_score for score in ranked]
    assert scores == sorted(scores, reverse=True)
    assert ranked[0].worker_id == 1


def test_rank_workers_ties_keep_first_seen_order() -> None:
    records = [_record(worker_id, worker_id) for worker_id in (5, 3, 9, 1)]

    ranked = rank_workers(records, limit=3)

    assert [score.worker_id for score in ranked] == [5, 3, 9]


def test_rank_workers_with_no_records() -> None:
    assert rank_workers([]) == ()


@pytest.mark.parametrize(
    ("value", "grade"),
    [
        (95.0, "A+ (Exceptional)"),
        (85.0, "A (Excellent)"),
        (79.99, "B (Good)"),
        (50.0, "D (Poor)"),
        (49.99, "F (Failing)"),
    ],
)
def test_performance_grade_thresholds(value: float, grade: str) -> None:
    score = WorkerScore(
        worker_id=1,
        public_id=uuid.uuid4(),
        first_name="A",
        last_name="B",
        total_tasks=1,
        completed_tasks=1,
        overall_score=value,
    )

    assert score.performance_grade == grade
