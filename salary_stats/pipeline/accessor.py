"""Entry store accessor: fetch, normalize and annotate salary records."""

import logging

from salary_stats.core.config import OutlierConfig
from salary_stats.core.schemas import SalaryFilters, SalaryInsert, SalaryRecord
from salary_stats.pipeline.normalizer import normalize_rows
from salary_stats.pipeline.outliers import detect_outliers
from salary_stats.store.base import SalaryStore

logger = logging.getLogger(__name__)


class EntryStoreAccessor:
    """Reads and writes salary records through an explicit store handle.

    Usage::

        accessor = EntryStoreAccessor(store)
        entries = await accessor.fetch_entries(SalaryFilters(formation="Master"))
        # entries are ordered newest first and carry outlier annotations
    """

    def __init__(
        self,
        store: SalaryStore,
        outlier_config: OutlierConfig | None = None,
    ) -> None:
        self._store = store
        self._outlier_config = outlier_config or OutlierConfig()

    async def fetch_entries(self, filters: SalaryFilters | None = None) -> list[SalaryRecord]:
        """Fetch matching records, newest first, annotated by the outlier detector.

        Raises:
            DataAccessError: If the remote query fails. No match is not an error.
        """
        filters = filters or SalaryFilters()
        rows = await self._store.select(
            equals=filters.equality_filters(),
            members=filters.membership_filters(),
            order_desc="created_at",
        )
        logger.info("Fetched %d salary rows", len(rows))
        records = normalize_rows(rows)
        return detect_outliers(records, self._outlier_config)

    async def create_entry(self, payload: SalaryInsert) -> None:
        """Submit one salary entry.

        Raises:
            DataAccessError: If the remote insert fails.
        """
        await self._store.insert(payload.to_row())
        logger.info(
            "Submitted %s/%s/%s entry",
            payload.formation, payload.speciality, payload.contract_type,
        )
