from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from servicedesk.application import get_report_service
from servicedesk.application.periods import PeriodCount
from servicedesk.core import charts
from servicedesk.core.aggregator import REPORT_COLUMNS, flatten_rows
from servicedesk.core.errors import ReportError
from servicedesk.core.periods import parse_quarter
from servicedesk.domain import AggregationResult, ReportArtifact
from servicedesk.routes.errors import to_http_error

router = APIRouter(prefix="/reports", tags=["reports"])


def _cell(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _serialise_aggregation(aggregation: AggregationResult) -> dict[str, Any]:
    slices = charts.project(aggregation)
    return {
        "total_count": aggregation.total_count,
        "groups": [{"issue": group.issue, "count": group.count} for group in aggregation.groups],
        "slices": [
            {"label": item.label, "value": item.value, "percentage": item.percentage} for item in slices
        ],
        "columns": list(REPORT_COLUMNS),
        "rows": [[_cell(value) for value in row] for row in flatten_rows(aggregation)],
        "skipped": [
            {"position": item.position, "record_id": item.record_id, "reason": item.reason}
            for item in aggregation.skipped
        ],
    }


def _serialise_navigation(items: list[PeriodCount]) -> list[dict[str, Any]]:
    return [
        {"year": item.key.year, "month": item.key.month, "label": item.label, "count": item.count}
        for item in items
    ]


def _quarter(value: str) -> int:
    try:
        return parse_quarter(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _attachment(artifact: ReportArtifact) -> Response:
    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
    )


@router.get("/months/{month_id}")
async def get_month_report(month_id: str) -> dict:
    service = get_report_service()
    try:
        aggregation = await service.aggregate_for_month(month_id)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return {"month_id": month_id, **_serialise_aggregation(aggregation)}


@router.get("/years/{year_id}")
async def get_year_report(year_id: str) -> dict:
    service = get_report_service()
    try:
        await service.periods.resolve_year(year_id)
        aggregation = await service.aggregate_for_year(year_id)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return {"year_id": year_id, **_serialise_aggregation(aggregation)}


@router.get("/years/{year_id}/summary")
async def get_year_summary(year_id: str) -> dict:
    service = get_report_service()
    try:
        summary = await service.dashboard_summary(year_id)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return {
        "year_id": year_id,
        "year": summary["year"],
        "status": summary["status"],
        "months": _serialise_navigation(summary["months"]),
        "quarters": _serialise_navigation(summary["quarters"]),
        **_serialise_aggregation(summary["aggregation"]),
    }


@router.get("/years/{year_id}/quarters/{quarter}")
async def get_quarter_report(year_id: str, quarter: str) -> dict:
    number = _quarter(quarter)
    service = get_report_service()
    try:
        aggregation = await service.aggregate_for_quarter(year_id, number)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return {"year_id": year_id, "quarter": number, **_serialise_aggregation(aggregation)}


@router.get("/years/{year_id}/months/{month_id}/export")
async def export_month(
    year_id: str,
    month_id: str,
    fmt: Literal["xlsx", "csv"] = Query(default="xlsx", alias="format"),
) -> Response:
    service = get_report_service()
    try:
        artifact = await service.export_monthly_report(year_id, month_id, fmt)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return _attachment(artifact)


@router.get("/years/{year_id}/export")
async def export_year(
    year_id: str,
    fmt: Literal["xlsx", "csv"] = Query(default="xlsx", alias="format"),
) -> Response:
    service = get_report_service()
    try:
        artifact = await service.export_yearly_report(year_id, fmt)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return _attachment(artifact)


@router.get("/years/{year_id}/quarters/{quarter}/export")
async def export_quarter(
    year_id: str,
    quarter: str,
    fmt: Literal["xlsx", "csv"] = Query(default="xlsx", alias="format"),
) -> Response:
    number = _quarter(quarter)
    service = get_report_service()
    try:
        artifact = await service.export_quarterly_report(year_id, number, fmt)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return _attachment(artifact)
