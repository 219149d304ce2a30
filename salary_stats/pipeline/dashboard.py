"""Dashboard query cycle: wires accessor, exclusions and metrics.

Data flow:
  1. Accessor fetch → annotated records (newest first)
  2. Exclusion filters → eligible subset
  3. Metrics, median and overall average over the eligible subset
  4. Filter options and outlier summary over the full fetched set
"""

import json
import logging

from pydantic import BaseModel, ConfigDict, Field

from salary_stats.core.config import MetricsConfig
from salary_stats.core.schemas import (
    ExclusionPreferences,
    MetricsSnapshot,
    OutlierSummary,
    SalaryFilters,
    SalaryRecord,
)
from salary_stats.pipeline.accessor import EntryStoreAccessor
from salary_stats.pipeline.exclusions import filter_for_calculations, summarize_outliers
from salary_stats.pipeline.metrics import compute_metrics
from salary_stats.pipeline.stats import available_years, compute_median, overall_average

logger = logging.getLogger(__name__)


class DashboardView(BaseModel):
    """Everything the presentation layer renders for one query cycle."""

    model_config = ConfigDict(frozen=True)

    filters: SalaryFilters
    preferences: ExclusionPreferences
    entries: list[SalaryRecord] = Field(default_factory=list)
    metrics: MetricsSnapshot = Field(default_factory=MetricsSnapshot)
    median_salary: int = 0
    average_salary: int = 0
    available_years: list[int] = Field(default_factory=list)
    outliers: OutlierSummary = Field(default_factory=OutlierSummary)


def summarize(
    entries: list[SalaryRecord],
    filters: SalaryFilters,
    preferences: ExclusionPreferences,
    config: MetricsConfig | None = None,
) -> DashboardView:
    """Build the view from already-fetched, annotated records (no I/O)."""
    eligible = filter_for_calculations(entries, preferences)
    return DashboardView(
        filters=filters,
        preferences=preferences,
        entries=entries,
        metrics=compute_metrics(entries, preferences, config),
        median_salary=compute_median(eligible),
        average_salary=overall_average(eligible),
        available_years=available_years(entries),
        outliers=summarize_outliers(entries, preferences),
    )


async def build_dashboard(
    accessor: EntryStoreAccessor,
    filters: SalaryFilters | None = None,
    preferences: ExclusionPreferences | None = None,
    config: MetricsConfig | None = None,
) -> DashboardView:
    """Run one fetch → filter → aggregate cycle.

    Raises:
        DataAccessError: If the fetch fails.
    """
    filters = filters or SalaryFilters()
    preferences = preferences or ExclusionPreferences()

    entries = await accessor.fetch_entries(filters)
    view = summarize(entries, filters, preferences, config)

    logger.info(
        "Dashboard: %d fetched, %d eligible, %d flagged",
        len(entries), view.metrics.total_participants, view.outliers.flagged_count,
    )
    return view


def export_dashboard_json(view: DashboardView) -> str:
    """Export the dashboard view as a JSON string."""
    data = view.model_dump(mode="json", exclude={"entries"})
    data["preferences"]["excluded_ids"] = sorted(view.preferences.excluded_ids)
    return json.dumps(data, indent=2, ensure_ascii=False)
