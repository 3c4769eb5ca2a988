"""Project progress derived from the phase/task tree."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping

from taskflow.domain.report import CountShare, Phase, PhaseProgress, ProjectProgress, freeze
from taskflow.models.entities import TaskPriority, WorkStatus

PRIORITY_WEIGHTS: dict[TaskPriority, float] = {
    TaskPriority.HIGH: 3.0,
    TaskPriority.MEDIUM: 2.0,
    TaskPriority.LOW: 1.0,
}

# Percent of a task considered done in each status.
STATUS_COMPLETION: dict[WorkStatus, float] = {
    WorkStatus.PENDING: 0.0,
    WorkStatus.ON_GOING: 50.0,
    WorkStatus.COMPLETED: 100.0,
    WorkStatus.DELAYED: 25.0,
    WorkStatus.CANCELLED: 0.0,
}

# (band floor, message), checked top-down against weighted progress.
PROGRESS_BANDS: tuple[tuple[float, str], ...] = (
    (90.0, "Project is near completion - excellent progress!"),
    (70.0, "Project is on track with good progress."),
    (50.0, "Project is progressing steadily."),
    (25.0, "Project needs attention to improve progress."),
)
LOW_PROGRESS_MESSAGE = "Project requires immediate attention - low progress."
NO_PHASES_MESSAGE = "No phases found in project"
NO_TASKS_MESSAGE = "No tasks found in any phase"

PENDING_INSIGHT_SHARE = 0.3
PENDING_RECOMMENDATION_SHARE = 0.4
ON_GOING_RECOMMENDATION_SHARE = 0.6


def _share(count: int, total: int, digits: int = 1) -> CountShare:
    percentage = round(count / total * 100, digits) if total > 0 else 0.0
    return CountShare(count=count, percentage=percentage)


def _breakdown(counts: Mapping, members: Iterable, total: int) -> Mapping:
    return freeze({member: _share(counts.get(member, 0), total) for member in members})


def calculate_phase_progress(phase: Phase) -> PhaseProgress:
    statuses = Counter(task.status for task in phase.tasks)
    priorities = Counter(task.priority for task in phase.tasks)
    total_tasks = len(phase.tasks)

    total_weight = sum(PRIORITY_WEIGHTS.get(task.priority, 1.0) for task in phase.tasks)
    weighted_total = sum(
        STATUS_COMPLETION.get(task.status, 0.0) * PRIORITY_WEIGHTS.get(task.priority, 1.0)
        for task in phase.tasks
    )
    weighted_progress = weighted_total / total_weight if total_weight > 0 else 0.0

    completed = statuses[WorkStatus.COMPLETED]
    # Cancelled tasks are out of scope for "done vs. to do".
    denominator = total_tasks - statuses[WorkStatus.CANCELLED]
    simple_progress = completed / denominator * 100 if denominator > 0 else 0.0

    return PhaseProgress(
        phase_id=phase.id,
        phase_name=phase.name,
        total_tasks=total_tasks,
        completed_tasks=completed,
        weighted_progress=round(weighted_progress, 2),
        simple_progress=round(simple_progress, 2),
        status_breakdown=_breakdown(statuses, WorkStatus, total_tasks),
        priority_breakdown=_breakdown(priorities, TaskPriority, total_tasks),
    )


def _empty_progress(message: str) -> ProjectProgress:
    return ProjectProgress(
        progress_percentage=0.0,
        simple_progress_percentage=0.0,
        total_tasks=0,
        status_breakdown=freeze({}),
        priority_breakdown=freeze({}),
        status_priority_matrix=freeze({}),
        phases=(),
        insights=(message,),
    )


def generate_insights(
    statuses: Mapping[WorkStatus, int],
    priorities: Mapping[TaskPriority, int],
    total_tasks: int,
    progress: float,
) -> tuple[str, ...]:
    insights = [next((message for floor, message in PROGRESS_BANDS if progress >= floor), LOW_PROGRESS_MESSAGE)]

    delayed = statuses.get(WorkStatus.DELAYED, 0)
    if delayed > 0:
        insights.append(f"Warning: {delayed} tasks ({round(delayed / total_tasks * 100, 1)}%) are delayed.")

    cancelled = statuses.get(WorkStatus.CANCELLED, 0)
    if cancelled > 0:
        insights.append(f"Note: {cancelled} tasks have been cancelled.")

    high = priorities.get(TaskPriority.HIGH, 0)
    if high > statuses.get(WorkStatus.COMPLETED, 0):
        insights.append(f"Focus needed: {high} high-priority tasks require attention.")

    if statuses.get(WorkStatus.PENDING, 0) > total_tasks * PENDING_INSIGHT_SHARE:
        insights.append("Many tasks are still pending - consider resource allocation.")

    return tuple(insights)


def generate_recommendations(
    statuses: Mapping[WorkStatus, int],
    priorities: Mapping[TaskPriority, int],
    total_tasks: int,
) -> tuple[str, ...]:
    recommendations = []
    if statuses.get(WorkStatus.ON_GOING, 0) > total_tasks * ON_GOING_RECOMMENDATION_SHARE:
        recommendations.append("Consider if team capacity is sufficient for current workload.")
    if priorities.get(TaskPriority.HIGH, 0) > 0:
        recommendations.append("Prioritize high-priority tasks for maximum impact.")
    if statuses.get(WorkStatus.DELAYED, 0) > 0:
        recommendations.append("Review delayed tasks and reassign resources if necessary.")
    if statuses.get(WorkStatus.PENDING, 0) > total_tasks * PENDING_RECOMMENDATION_SHARE:
        recommendations.append("Activate pending tasks to maintain project momentum.")
    return tuple(recommendations)


def calculate_project_progress(phases: Iterable[Phase]) -> ProjectProgress:
    """Weighted project progress; each phase counts in proportion to its task count."""

    phases = tuple(phases)
    if not phases:
        return _empty_progress(NO_PHASES_MESSAGE)
    tasks = [task for phase in phases for task in phase.tasks]
    if not tasks:
        return _empty_progress(NO_TASKS_MESSAGE)

    phase_progress = tuple(calculate_phase_progress(phase) for phase in phases)
    total_tasks = len(tasks)
    weighted = round(sum(item.weighted_progress * item.total_tasks for item in phase_progress) / total_tasks, 2)

    statuses = Counter(task.status for task in tasks)
    priorities = Counter(task.priority for task in tasks)
    pairs = Counter((task.status, task.priority) for task in tasks)
    matrix = {
        status: {priority: _share(pairs.get((status, priority), 0), total_tasks, 2) for priority in TaskPriority}
        for status in WorkStatus
    }

    return ProjectProgress(
        progress_percentage=weighted,
        simple_progress_percentage=round(statuses[WorkStatus.COMPLETED] / total_tasks * 100, 2),
        total_tasks=total_tasks,
        status_breakdown=_breakdown(statuses, WorkStatus, total_tasks),
        priority_breakdown=_breakdown(priorities, TaskPriority, total_tasks),
        status_priority_matrix=freeze(matrix),
        phases=phase_progress,
        insights=generate_insights(statuses, priorities, total_tasks, weighted),
        recommendations=generate_recommendations(statuses, priorities, total_tasks),
    )
