"""Exclusion filters that derive the calculation-eligible subset.

Both filters only remove records, so the order they run in does not change
the result:
  1. FlaggedOutlierFilter — drop records annotated as outliers (toggleable)
  2. ExcludedIdsFilter    — drop records the user excluded individually
"""

import logging
from collections.abc import Callable

from salary_stats.core.schemas import ExclusionPreferences, OutlierSummary, SalaryRecord

logger = logging.getLogger(__name__)

# A filter is a callable that takes records and returns a subset.
Filter = Callable[[list[SalaryRecord]], list[SalaryRecord]]


class FlaggedOutlierFilter:
    """Remove records flagged by the outlier detector, when enabled."""

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    def __call__(self, entries: list[SalaryRecord]) -> list[SalaryRecord]:
        if not self._enabled:
            return entries
        result = [e for e in entries if not e.is_flagged_outlier]
        removed = len(entries) - len(result)
        if removed:
            logger.debug("FlaggedOutlierFilter: removed %d records", removed)
        return result


class ExcludedIdsFilter:
    """Remove records whose id was excluded individually, flagged or not."""

    def __init__(self, excluded_ids: frozenset[str] | set[str]) -> None:
        self._ids = frozenset(excluded_ids)

    def __call__(self, entries: list[SalaryRecord]) -> list[SalaryRecord]:
        if not self._ids:
            return entries
        result = [e for e in entries if e.id not in self._ids]
        removed = len(entries) - len(result)
        if removed:
            logger.debug("ExcludedIdsFilter: removed %d records", removed)
        return result


def run_filter_chain(
    entries: list[SalaryRecord],
    filters: list[Filter],
) -> list[SalaryRecord]:
    """Apply filters in order, returning the surviving records."""
    result = entries
    for f in filters:
        result = f(result)
    return result


def build_filters(preferences: ExclusionPreferences) -> list[Filter]:
    return [
        FlaggedOutlierFilter(preferences.exclude_outliers),
        ExcludedIdsFilter(preferences.excluded_ids),
    ]


def filter_for_calculations(
    entries: list[SalaryRecord],
    preferences: ExclusionPreferences | None = None,
) -> list[SalaryRecord]:
    """Subset of annotated ``entries`` used for averages, medians and histograms."""
    preferences = preferences or ExclusionPreferences()
    return run_filter_chain(list(entries), build_filters(preferences))


def summarize_outliers(
    entries: list[SalaryRecord],
    preferences: ExclusionPreferences | None = None,
) -> OutlierSummary:
    """Count flagged records and how many of them are currently excluded."""
    preferences = preferences or ExclusionPreferences()
    flagged = [e for e in entries if e.is_flagged_outlier]
    excluded = [
        e for e in flagged
        if preferences.exclude_outliers or e.id in preferences.excluded_ids
    ]
    return OutlierSummary(
        flagged_count=len(flagged),
        excluded_flagged_count=len(excluded),
        flagged_ids=[e.id for e in flagged],
    )
