"""Resolve month, quarter and year windows into concrete record sequences."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Iterable, Iterator

from servicedesk.core.aggregator import count_by_period, filter_quarter, filter_quarter_skipped
from servicedesk.core.errors import FetchFailure, UnknownPeriod
from servicedesk.core.periods import PeriodKey, PeriodUnit, parse_quarter
from servicedesk.core.schema import RequestRecord
from servicedesk.core.validation import parse_records
from servicedesk.domain import MalformedRecord, MonthRef, YearRef
from servicedesk.infrastructure import RequestStore

logger = logging.getLogger(__name__)


@dataclass
class RecordCollection:
    """Records of one window in input order, plus the rows that were rejected."""

    records: list[RequestRecord] = field(default_factory=list)
    malformed: list[MalformedRecord] = field(default_factory=list)

    def __iter__(self) -> Iterator[RequestRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class PeriodCount:
    key: PeriodKey
    label: str
    count: int


class PeriodSelector:
    def __init__(self, store: RequestStore, *, tz: tzinfo | None = None) -> None:
        self._store = store
        self._tz = tz

    def _parse(self, rows: list[dict], scope: str) -> RecordCollection:
        parsed = parse_records(rows)
        if parsed.malformed:
            logger.info("Skipped %d malformed record(s) in %s", len(parsed.malformed), scope)
        return RecordCollection(records=parsed.records, malformed=parsed.malformed)

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------
    async def resolve_year(self, year_id: str | int) -> YearRef:
        for ref in await self._store.fetch_years():
            if str(ref.id) == str(year_id):
                return ref
        raise UnknownPeriod(f"year {year_id} not found")

    async def resolve_month(self, year_id: str | int, month_id: str | int) -> MonthRef:
        for ref in await self._store.fetch_months_of_year(year_id):
            if str(ref.id) == str(month_id):
                return ref
        raise UnknownPeriod(f"month {month_id} not found in year {year_id}")

    async def find_month(self, month_id: str | int) -> MonthRef:
        """Locate a month by id alone, searching every year the store knows."""

        years = await self._store.fetch_years()
        listings = await asyncio.gather(*(self._store.fetch_months_of_year(ref.id) for ref in years))
        for months in listings:
            for ref in months:
                if str(ref.id) == str(month_id):
                    return ref
        raise UnknownPeriod(f"month {month_id} not found")

    # ------------------------------------------------------------------
    # collection
    # ------------------------------------------------------------------
    async def collect_month(self, month_id: str | int) -> RecordCollection:
        rows = await self._store.fetch_records_by_month(month_id)
        return self._parse(rows, f"month {month_id}")

    async def collect_year(self, year_id: str | int) -> RecordCollection:
        """Fetch every month of the year and concatenate them in month order.

        Months are fetched concurrently.  If any month fails the whole year
        fails, so a partial year is never presented as complete.
        """

        months = sorted(await self._store.fetch_months_of_year(year_id), key=lambda ref: ref.index)
        results = await asyncio.gather(
            *(self._store.fetch_records_by_month(ref.id) for ref in months),
            return_exceptions=True,
        )

        rows: list[dict] = []
        for ref, result in zip(months, results):
            if isinstance(result, BaseException):
                if isinstance(result, FetchFailure):
                    raise FetchFailure(f"year {year_id}: {ref.month or ref.id} could not be fetched") from result
                raise result
            rows.extend(result)
        return self._parse(rows, f"year {year_id}")

    async def collect_quarter(
        self,
        year_id: str | int,
        quarter: int | str,
        year_records: RecordCollection | None = None,
    ) -> RecordCollection:
        try:
            number = parse_quarter(quarter)
        except ValueError as exc:
            raise UnknownPeriod(str(exc)) from exc

        year = await self.resolve_year(year_id)
        source = year_records if year_records is not None else await self.collect_year(year_id)
        return RecordCollection(
            records=filter_quarter(source.records, year.year, number, self._tz),
            malformed=filter_quarter_skipped(source.malformed, year.year, number, self._tz),
        )

    # ------------------------------------------------------------------
    # navigation
    # ------------------------------------------------------------------
    def navigation(self, records: Iterable[RequestRecord], unit: PeriodUnit) -> list[PeriodCount]:
        counts = count_by_period(records, unit, self._tz)
        return [PeriodCount(key=key, label=key.label(unit), count=count) for key, count in counts.items()]
