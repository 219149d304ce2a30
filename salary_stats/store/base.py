"""Abstract base class for remote salary stores."""

from abc import ABC, abstractmethod
from typing import Any


class DataAccessError(Exception):
    """The remote query or insert failed (network, auth or malformed query)."""


class SalaryStore(ABC):
    """Generic query interface over the remote salary collection.

    Rows come back loosely typed: numbers may arrive as strings and optional
    columns may be missing. Normalization is the caller's job.
    """

    @abstractmethod
    async def select(
        self,
        *,
        equals: dict[str, str],
        members: dict[str, list[int]],
        order_desc: str = "created_at",
    ) -> list[dict[str, Any]]:
        """Return every row matching all filters, ordered by ``order_desc`` descending.

        Raises:
            DataAccessError: If the remote query fails.
        """

    @abstractmethod
    async def insert(self, row: dict[str, Any]) -> None:
        """Insert one row.

        Raises:
            DataAccessError: If the remote insert fails.
        """
