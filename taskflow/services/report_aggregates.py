"""Worker status distribution and monthly task throughput aggregation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from taskflow.domain.report import CountShare, PeriodicTaskCount, WorkerStatusBreakdown, freeze


def percentage_of(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return (count / total) * 100


def aggregate_worker_status(counts: Mapping[str, int], total: int) -> WorkerStatusBreakdown:
    """Attach a percentage of ``total`` to every status count.

    ``total`` is an opaque denominator supplied by the query layer; it is not
    re-derived from the counts, since status categories may overlap.
    """

    return freeze(
        {
            status: CountShare(count=count, percentage=percentage_of(count, total))
            for status, count in counts.items()
            if status != "total"
        }
    )


def aggregate_periodic_counts(buckets: Iterable[tuple[int, int, int]]) -> PeriodicTaskCount:
    """Fold ``(year, month, count)`` rows into ``{year: {month: count}}``.

    Duplicate buckets are summed. Missing months stay absent. Keys come out
    sorted so the result does not depend on row order.
    """

    folded: dict[int, dict[int, int]] = {}
    for year, month, count in buckets:
        months = folded.setdefault(year, {})
        months[month] = months.get(month, 0) + count

    return freeze({year: dict(sorted(folded[year].items())) for year in sorted(folded)})
