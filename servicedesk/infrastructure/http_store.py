"""HTTP client for the service request REST API."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from servicedesk.core.errors import FetchFailure
from servicedesk.core.periods import month_index
from servicedesk.domain import MonthRef, YearRef

logger = logging.getLogger(__name__)


class HttpRequestStore:
    """Reads requests, months and years from the service desk backend."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must include scheme and host")
        self._base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise FetchFailure(f"GET {path} returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchFailure(f"GET {path} failed: {exc}") from exc
        except ValueError as exc:
            raise FetchFailure(f"GET {path} returned an undecodable body") from exc

    @staticmethod
    def _expect_list(payload: Any, path: str) -> list[Any]:
        if not isinstance(payload, list):
            raise FetchFailure(f"GET {path} returned {type(payload).__name__}, expected a list")
        return payload

    @staticmethod
    def _month_ref(row: dict[str, Any], position: int, year_id: str | int | None) -> MonthRef:
        name = str(row.get("month") or "")
        index = row.get("index")
        if index is None:
            index = month_index(name)
        if index is None:
            index = position
        return MonthRef(id=row["id"], month=name, index=int(index), year_id=row.get("yearId", year_id))

    # ------------------------------------------------------------------
    # RequestStore
    # ------------------------------------------------------------------
    async def fetch_records_by_month(self, month_id: str | int) -> list[dict[str, Any]]:
        path = f"/year/get-request/{month_id}"
        rows = self._expect_list(await self._get_json(path), path)
        return [row for row in rows if isinstance(row, dict)]

    async def fetch_records_recent(self, limit: int, offset: int = 0) -> list[dict[str, Any]]:
        path = "/year/get-all-softrequest"
        payload = await self._get_json(path, params={"limit": limit, "offset": offset})
        data = payload.get("data") if isinstance(payload, dict) else payload
        rows = self._expect_list(data, path)
        return [row for row in rows if isinstance(row, dict)]

    async def fetch_months_of_year(self, year_id: str | int) -> list[MonthRef]:
        path = f"/month/getByYear/{year_id}"
        rows = self._expect_list(await self._get_json(path), path)
        months: list[MonthRef] = []
        for position, row in enumerate(rows):
            if not isinstance(row, dict) or "id" not in row:
                logger.info("Ignoring month entry without id for year %s: %r", year_id, row)
                continue
            months.append(self._month_ref(row, position, year_id))
        return months

    async def fetch_years(self) -> list[YearRef]:
        path = "/year/get-year"
        rows = self._expect_list(await self._get_json(path), path)
        years: list[YearRef] = []
        for row in rows:
            try:
                years.append(YearRef(id=row["id"], year=int(row["year"])))
            except (KeyError, TypeError, ValueError):
                logger.info("Ignoring malformed year entry: %r", row)
        return years

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["HttpRequestStore"]
