"""PostgREST adapter for the managed salary collection.

Query dialect:
  - equality:   ``formation=eq.Master``
  - membership: ``years_since_graduation=in.(1,3)``
  - ordering:   ``order=created_at.desc``
"""

import logging
from typing import Any

import httpx

from salary_stats.core.config import StoreConfig
from salary_stats.store.base import DataAccessError, SalaryStore

logger = logging.getLogger(__name__)


def build_client(config: StoreConfig) -> httpx.AsyncClient:
    """Create an HTTP client bound to the store's REST endpoint."""
    if not config.url:
        msg = "store.url must be configured"
        raise ValueError(msg)
    key = config.resolve_key()
    return httpx.AsyncClient(
        base_url=f"{config.url}/rest/v1/",
        headers={"apikey": key, "Authorization": f"Bearer {key}"},
        timeout=config.timeout_s,
    )


class PostgrestSalaryStore(SalaryStore):
    """Salary store backed by a PostgREST endpoint.

    The client is owned by the caller, which also closes it.
    """

    def __init__(self, client: httpx.AsyncClient, table: str = "salaries") -> None:
        self._client = client
        self._table = table

    async def select(
        self,
        *,
        equals: dict[str, str],
        members: dict[str, list[int]],
        order_desc: str = "created_at",
    ) -> list[dict[str, Any]]:
        params = self._query_params(equals, members, order_desc)
        logger.debug("GET %s %s", self._table, params)
        response = await self._request("GET", params=params)
        try:
            data = response.json()
        except ValueError as e:
            msg = f"Malformed response from salary store: {e}"
            raise DataAccessError(msg) from e
        if not isinstance(data, list):
            msg = f"Expected a list of rows, got {type(data).__name__}"
            raise DataAccessError(msg)
        return [row for row in data if isinstance(row, dict)]

    async def insert(self, row: dict[str, Any]) -> None:
        logger.debug("POST %s", self._table)
        await self._request("POST", json=row, headers={"Prefer": "return=minimal"})

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, self._table, **kwargs)
        except httpx.HTTPError as e:
            msg = f"Salary store request failed: {e}"
            raise DataAccessError(msg) from e
        if response.is_error:
            msg = f"Salary store returned HTTP {response.status_code}: {response.text}"
            raise DataAccessError(msg)
        return response

    @staticmethod
    def _query_params(
        equals: dict[str, str],
        members: dict[str, list[int]],
        order_desc: str,
    ) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = [("select", "*")]
        for column, value in equals.items():
            params.append((column, f"eq.{value}"))
        for column, values in members.items():
            if values:
                joined = ",".join(str(v) for v in values)
                params.append((column, f"in.({joined})"))
        params.append(("order", f"{order_desc}.desc"))
        return params
