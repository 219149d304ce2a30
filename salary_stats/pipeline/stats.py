"""Order statistics and small summaries over salary records."""

import math
from collections.abc import Iterable

from salary_stats.core.schemas import SalaryRecord


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def median_of(values: Iterable[int]) -> int:
    """Median of integer values; 0 when empty. Even counts round the mean of the middle pair."""
    ordered = sorted(values)
    if not ordered:
        return 0
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return round_half_up((ordered[middle - 1] + ordered[middle]) / 2)
    return ordered[middle]


def compute_median(entries: list[SalaryRecord]) -> int:
    """Median salary of a record set (0 for an empty set)."""
    return median_of(e.salary for e in entries)


def overall_average(entries: list[SalaryRecord]) -> int:
    """Rounded mean salary of a record set (0 for an empty set)."""
    if not entries:
        return 0
    return round_half_up(sum(e.salary for e in entries) / len(entries))


def available_years(entries: list[SalaryRecord]) -> list[int]:
    """Distinct years-since-graduation values present, ascending."""
    return sorted({e.years_since_graduation for e in entries if e.years_since_graduation is not None})
