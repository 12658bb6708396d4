"""Application service layer for report aggregation, export and monitoring."""
from __future__ import annotations

import asyncio
import logging
from typing import Literal

from servicedesk.application.periods import PeriodSelector, RecordCollection
from servicedesk.core import charts
from servicedesk.core.aggregator import count_by_status, group_by_issue
from servicedesk.core.errors import EmptyDataset, UnknownPeriod
from servicedesk.core.periods import PeriodUnit, parse_quarter
from servicedesk.core.settings import Settings, get_settings
from servicedesk.domain import AggregationResult, ReportArtifact
from servicedesk.exporters.report_csv import CSV_MEDIA_TYPE, build_csv
from servicedesk.exporters.report_workbook import XLSX_MEDIA_TYPE, build_workbook, report_filename
from servicedesk.infrastructure import HttpRequestStore, RequestStore
from servicedesk.workers.watcher import ChangeWatcher, OnNewRecord

logger = logging.getLogger(__name__)

ExportFormat = Literal["xlsx", "csv"]


class ReportService:
    """Coordinates aggregation, charting and export for one request store."""

    def __init__(self, store: RequestStore, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._tz = self._settings.tzinfo
        self.periods = PeriodSelector(store, tz=self._tz)

    @property
    def store(self) -> RequestStore:
        return self._store

    # ------------------------------------------------------------------
    # aggregation
    # ------------------------------------------------------------------
    @staticmethod
    def _aggregate(collection: RecordCollection) -> AggregationResult:
        return group_by_issue(collection.records, skipped=collection.malformed)

    async def aggregate_for_month(self, month_id: str | int) -> AggregationResult:
        month = await self.periods.find_month(month_id)
        return self._aggregate(await self.periods.collect_month(month.id))

    async def aggregate_for_year(self, year_id: str | int) -> AggregationResult:
        return self._aggregate(await self.periods.collect_year(year_id))

    async def aggregate_for_quarter(self, year_id: str | int, quarter: int | str) -> AggregationResult:
        return self._aggregate(await self.periods.collect_quarter(year_id, quarter))

    async def dashboard_summary(self, year_id: str | int) -> dict[str, object]:
        year = await self.periods.resolve_year(year_id)
        collection = await self.periods.collect_year(year_id)
        aggregation = self._aggregate(collection)
        return {
            "year": year.year,
            "aggregation": aggregation,
            "slices": charts.project(aggregation),
            "status": count_by_status(collection.records),
            "months": self.periods.navigation(collection.records, PeriodUnit.MONTH),
            "quarters": self.periods.navigation(collection.records, PeriodUnit.QUARTER),
        }

    # ------------------------------------------------------------------
    # monitoring
    # ------------------------------------------------------------------
    def watch_for_new_requests(self, interval_ms: int | None, on_new_record: OnNewRecord) -> ChangeWatcher:
        limit = self._settings.watch_fetch_limit

        async def fetch_latest() -> list[dict]:
            return await self._store.fetch_records_recent(limit, 0)

        watcher = ChangeWatcher()
        watcher.start(interval_ms or self._settings.watch_interval_ms, fetch_latest, on_new_record)
        return watcher

    @staticmethod
    async def cancel(handle: ChangeWatcher) -> None:
        await handle.stop()

    # ------------------------------------------------------------------
    # export
    # ------------------------------------------------------------------
    async def _export(
        self,
        title: str,
        filename_parts: tuple[object, ...],
        kind: str,
        aggregation: AggregationResult,
        fmt: ExportFormat,
    ) -> ReportArtifact:
        if aggregation.total_count == 0:
            raise EmptyDataset(f"no requests recorded for {title}")

        slices = charts.project(aggregation)
        if fmt == "csv":
            content = build_csv(aggregation, tz=self._tz)
            filename = report_filename(kind, *filename_parts, extension="csv")
            media_type = CSV_MEDIA_TYPE
        else:
            image = await asyncio.to_thread(charts.rasterize, slices, self._settings.layout)
            content = build_workbook(title, aggregation, image, self._settings.layout, tz=self._tz)
            filename = report_filename(kind, *filename_parts)
            media_type = XLSX_MEDIA_TYPE

        logger.info(
            "Exported %s (%d request(s), %d skipped)",
            filename,
            aggregation.total_count,
            aggregation.skipped_count,
        )
        return ReportArtifact(
            filename=filename,
            content=content,
            media_type=media_type,
            aggregation=aggregation,
            slices=slices,
        )

    async def export_monthly_report(
        self,
        year_id: str | int,
        month_id: str | int,
        fmt: ExportFormat = "xlsx",
    ) -> ReportArtifact:
        year = await self.periods.resolve_year(year_id)
        month = await self.periods.resolve_month(year_id, month_id)
        aggregation = self._aggregate(await self.periods.collect_month(month.id))
        title = f"Monthly Report {month.month} {year.year}"
        return await self._export(title, (month.month, year.year), "monthly", aggregation, fmt)

    async def export_yearly_report(self, year_id: str | int, fmt: ExportFormat = "xlsx") -> ReportArtifact:
        year = await self.periods.resolve_year(year_id)
        aggregation = await self.aggregate_for_year(year_id)
        return await self._export(f"Yearly Report {year.year}", (year.year,), "yearly", aggregation, fmt)

    async def export_quarterly_report(
        self,
        year_id: str | int,
        quarter: int | str,
        fmt: ExportFormat = "xlsx",
    ) -> ReportArtifact:
        try:
            number = parse_quarter(quarter)
        except ValueError as exc:
            raise UnknownPeriod(str(exc)) from exc
        year = await self.periods.resolve_year(year_id)
        aggregation = await self.aggregate_for_quarter(year_id, number)
        title = f"Quarterly Report {year.year} Q{number}"
        return await self._export(title, (year.year, f"Q{number}"), "quarterly", aggregation, fmt)


_service: ReportService | None = None


def configure_report_service(service: ReportService) -> None:
    """Install the service used by the HTTP routes."""

    global _service
    _service = service


def get_report_service() -> ReportService:
    """Return the process-wide report service, creating an HTTP-backed one on first use."""

    global _service
    if _service is None:
        settings = get_settings()
        store = HttpRequestStore(settings.store_url, timeout=settings.store_timeout)
        _service = ReportService(store, settings)
    return _service


def reset_report_service() -> None:
    """Drop the configured service (used in tests)."""

    global _service
    _service = None
