"""Grouped aggregates for the salary dashboard.

Averages, counts, histogram and cross-tab are computed over the eligible
subset (after exclusions). The latest-entries listing is taken from the full
annotated set so excluded records stay visible and can be toggled back.
"""

import logging
from collections import Counter
from collections.abc import Callable, Hashable

from salary_stats.core.config import MetricsConfig, SalaryBucket
from salary_stats.core.schemas import (
    CONTRACT_TYPES,
    FORMATIONS,
    PARTICIPANT_TYPES,
    SPECIALTIES,
    BucketCount,
    CrossTabCell,
    ExclusionPreferences,
    MetricsSnapshot,
    SalaryRecord,
)
from salary_stats.pipeline.exclusions import filter_for_calculations
from salary_stats.pipeline.stats import round_half_up

logger = logging.getLogger(__name__)


class _Accumulator:
    """Running sum and count per key."""

    def __init__(self) -> None:
        self.totals: dict[Hashable, int] = {}
        self.counts: Counter[Hashable] = Counter()

    def add(self, key: Hashable, salary: int) -> None:
        self.totals[key] = self.totals.get(key, 0) + salary
        self.counts[key] += 1

    def averages(self) -> dict[Hashable, int]:
        return {key: round_half_up(total / self.counts[key]) for key, total in self.totals.items()}


def _ordered(values: dict[str, int], order: tuple[str, ...]) -> dict[str, int]:
    """Dict in closed-set order, unknown keys last."""
    rank = {name: i for i, name in enumerate(order)}
    return dict(sorted(values.items(), key=lambda kv: rank.get(kv[0], len(rank))))


def group_averages(
    entries: list[SalaryRecord],
    key: Callable[[SalaryRecord], str],
    order: tuple[str, ...] = (),
) -> dict[str, int]:
    """Rounded average salary per group; groups without members are absent."""
    acc = _Accumulator()
    for e in entries:
        acc.add(key(e), e.salary)
    return _ordered({str(k): v for k, v in acc.averages().items()}, order)


def group_counts(
    entries: list[SalaryRecord],
    key: Callable[[SalaryRecord], str],
    order: tuple[str, ...] = (),
) -> dict[str, int]:
    return _ordered(dict(Counter(key(e) for e in entries)), order)


def salary_histogram(
    entries: list[SalaryRecord],
    buckets: list[SalaryBucket],
) -> list[BucketCount]:
    """Count records per salary bucket; each record lands in exactly one bucket."""
    counts = [0] * len(buckets)
    for e in entries:
        salary = e.salary
        for i, bucket in enumerate(buckets):
            if bucket.contains(salary):
                counts[i] += 1
                break
    return [BucketCount(label=b.label, count=c) for b, c in zip(buckets, counts)]


def specialty_formation_averages(entries: list[SalaryRecord]) -> list[CrossTabCell]:
    """Average salary per (speciality, formation) pair with at least one member."""
    acc = _Accumulator()
    for e in entries:
        acc.add((e.speciality, e.formation), e.salary)

    spec_rank = {name: i for i, name in enumerate(SPECIALTIES)}
    form_rank = {name: i for i, name in enumerate(FORMATIONS)}
    cells = [
        CrossTabCell(speciality=spec, formation=form, average_salary=avg)
        for (spec, form), avg in acc.averages().items()  # type: ignore[misc]
    ]
    cells.sort(key=lambda c: (spec_rank[c.speciality], form_rank[c.formation]))
    return cells


def latest_entries(entries: list[SalaryRecord], limit: int | None = None) -> list[SalaryRecord]:
    """Most recent records first; ``limit`` None keeps them all."""
    ordered = sorted(entries, key=lambda e: e.created_at, reverse=True)
    return ordered if limit is None else ordered[:limit]


def compute_metrics(
    entries: list[SalaryRecord],
    preferences: ExclusionPreferences | None = None,
    config: MetricsConfig | None = None,
) -> MetricsSnapshot:
    """Build the dashboard metrics from the full annotated record set.

    Args:
        entries: All fetched records, already annotated by the outlier detector.
        preferences: Exclusion choices; defaults exclude flagged outliers.
        config: Histogram buckets and recent-entries limit.

    Returns:
        MetricsSnapshot where every aggregate covers only the eligible subset.
    """
    config = config or MetricsConfig()
    eligible = filter_for_calculations(entries, preferences)
    logger.debug("Computing metrics over %d of %d records", len(eligible), len(entries))

    return MetricsSnapshot(
        total_participants=len(eligible),
        average_by_formation=group_averages(eligible, lambda e: e.formation, FORMATIONS),
        average_by_specialty=group_averages(eligible, lambda e: e.speciality, SPECIALTIES),
        average_by_contract=group_averages(eligible, lambda e: e.contract_type, CONTRACT_TYPES),
        count_by_formation=group_counts(eligible, lambda e: e.formation, FORMATIONS),
        count_by_specialty=group_counts(eligible, lambda e: e.speciality, SPECIALTIES),
        count_by_participant_type=group_counts(
            eligible, lambda e: e.participant_type, PARTICIPANT_TYPES,
        ),
        salaries_by_range=salary_histogram(eligible, config.salary_buckets),
        average_by_specialty_and_formation=specialty_formation_averages(eligible),
        latest_entries=latest_entries(entries, config.recent_limit),
    )
