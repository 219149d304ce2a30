"""Heuristic outlier detection for salary records.

Two heuristics, first match wins:
  1. Absolute  — floor, global ceiling, then contract-specific ceiling
  2. Relative  — against the median of the (formation, speciality, contract_type)
                 group, only for groups with at least ``min_group_size`` members

Detection reads only formation, speciality, contract_type and salary, so a
second pass over already-annotated records yields the same annotations.
"""

import logging
from collections import defaultdict

from salary_stats.core.config import OutlierConfig
from salary_stats.core.schemas import SalaryRecord
from salary_stats.pipeline.stats import median_of

logger = logging.getLogger(__name__)

GroupKey = tuple[str, str, str]


def group_key(entry: SalaryRecord) -> GroupKey:
    return (entry.formation, entry.speciality, entry.contract_type)


def group_medians(
    entries: list[SalaryRecord],
    min_group_size: int,
) -> dict[GroupKey, int]:
    """Median salary per group, for groups large enough to be compared against."""
    salaries: dict[GroupKey, list[int]] = defaultdict(list)
    for e in entries:
        salaries[group_key(e)].append(e.salary)
    return {
        key: median_of(values)
        for key, values in salaries.items()
        if len(values) >= min_group_size
    }


def absolute_reason(entry: SalaryRecord, config: OutlierConfig) -> str | None:
    """Reason the salary is implausible on its own, or None."""
    salary = entry.salary
    if salary < config.min_salary:
        return f"Salary below minimum plausible value ({config.min_salary:,})"
    if salary > config.max_salary:
        return f"Salary above maximum plausible value ({config.max_salary:,})"
    ceiling = config.contract_ceilings.get(entry.contract_type)
    if ceiling is not None and salary > ceiling:
        return f"Salary above {entry.contract_type} ceiling ({ceiling:,})"
    return None


def relative_reason(
    entry: SalaryRecord,
    median: int | None,
    config: OutlierConfig,
) -> str | None:
    """Reason the salary is implausible relative to its group median, or None."""
    if not median:
        return None
    salary = entry.salary
    if salary < median / config.low_ratio:
        return f"Salary far below group median ({median:,})"
    if salary > median * config.high_ratio:
        return f"Salary far above group median ({median:,})"
    return None


def detect_outliers(
    entries: list[SalaryRecord],
    config: OutlierConfig | None = None,
) -> list[SalaryRecord]:
    """Return annotated copies of ``entries`` in the same order.

    Group medians are computed over the whole input, so pass the full fetched
    set rather than a filtered subset.
    """
    config = config or OutlierConfig()
    medians = group_medians(entries, config.min_group_size)

    annotated: list[SalaryRecord] = []
    for e in entries:
        reason = absolute_reason(e, config)
        if reason is None:
            reason = relative_reason(e, medians.get(group_key(e)), config)
        if reason is not None:
            logger.debug("Flagged %s: %s", e.id, reason)
        annotated.append(
            e.model_copy(update={"is_flagged_outlier": reason is not None, "outlier_reason": reason}),
        )

    flagged = sum(1 for e in annotated if e.is_flagged_outlier)
    if flagged:
        logger.info("Outlier detection: %d of %d records flagged", flagged, len(entries))
    return annotated
