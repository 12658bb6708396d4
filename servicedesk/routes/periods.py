from __future__ import annotations

from fastapi import APIRouter

from servicedesk.application import get_report_service
from servicedesk.core.errors import ReportError
from servicedesk.routes.errors import to_http_error

router = APIRouter(prefix="/periods", tags=["periods"])


@router.get("/years")
async def list_years() -> dict:
    service = get_report_service()
    try:
        years = await service.store.fetch_years()
    except ReportError as exc:
        raise to_http_error(exc) from exc
    return {"items": [{"id": ref.id, "year": ref.year} for ref in years]}


@router.get("/years/{year_id}/months")
async def list_months(year_id: str) -> dict:
    service = get_report_service()
    try:
        await service.periods.resolve_year(year_id)
        months = await service.store.fetch_months_of_year(year_id)
    except ReportError as exc:
        raise to_http_error(exc) from exc
    months = sorted(months, key=lambda ref: ref.index)
    return {
        "year_id": year_id,
        "items": [{"id": ref.id, "month": ref.month, "index": ref.index} for ref in months],
    }
