"""Request store contract consumed by the report engine."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from servicedesk.core.periods import MONTH_NAMES
from servicedesk.domain import MonthRef, YearRef


class RequestStore(Protocol):
    """Read-only view of the remote store holding service requests."""

    async def fetch_records_by_month(self, month_id: str | int) -> list[dict[str, Any]]: ...

    async def fetch_records_recent(self, limit: int, offset: int = 0) -> list[dict[str, Any]]: ...

    async def fetch_months_of_year(self, year_id: str | int) -> list[MonthRef]: ...

    async def fetch_years(self) -> list[YearRef]: ...


def _created_at(row: dict[str, Any]) -> str:
    value = row.get("createdAt") or row.get("created_at")
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value or "")


class InMemoryRequestStore:
    """Simple in-memory store for fast iteration and tests."""

    def __init__(self) -> None:
        self._years: dict[str, YearRef] = {}
        self._months: dict[str, MonthRef] = {}
        self._rows: dict[str, list[dict[str, Any]]] = {}
        self._recent: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    # seeding helpers
    # ------------------------------------------------------------------
    def add_year(self, year_id: str | int, year: int, *, with_months: bool = True) -> YearRef:
        ref = YearRef(id=year_id, year=year)
        self._years[str(year_id)] = ref
        if with_months:
            for index, name in enumerate(MONTH_NAMES):
                self.add_month(f"{year_id}-{index + 1:02d}", name, index, year_id=year_id)
        return ref

    def add_month(self, month_id: str | int, month: str, index: int, *, year_id: str | int) -> MonthRef:
        ref = MonthRef(id=month_id, month=month, index=index, year_id=year_id)
        self._months[str(month_id)] = ref
        self._rows.setdefault(str(month_id), [])
        return ref

    def add_record(self, month_id: str | int, row: dict[str, Any]) -> None:
        self._rows.setdefault(str(month_id), []).append(dict(row))
        self._recent.append(dict(row))

    def month_id(self, year_id: str | int, index: int) -> str | int:
        for ref in self._months.values():
            if str(ref.year_id) == str(year_id) and ref.index == index:
                return ref.id
        raise KeyError((year_id, index))

    # ------------------------------------------------------------------
    # RequestStore
    # ------------------------------------------------------------------
    async def fetch_records_by_month(self, month_id: str | int) -> list[dict[str, Any]]:
        return [dict(row) for row in self._rows.get(str(month_id), [])]

    async def fetch_records_recent(self, limit: int, offset: int = 0) -> list[dict[str, Any]]:
        ordered = sorted(self._recent, key=_created_at, reverse=True)
        return [dict(row) for row in ordered[offset : offset + limit]]

    async def fetch_months_of_year(self, year_id: str | int) -> list[MonthRef]:
        return [ref for ref in self._months.values() if str(ref.year_id) == str(year_id)]

    async def fetch_years(self) -> list[YearRef]:
        return sorted(self._years.values(), key=lambda ref: ref.year, reverse=True)

    def reset(self) -> None:
        self._years.clear()
        self._months.clear()
        self._rows.clear()
        self._recent.clear()
