from __future__ import annotations

from fastapi import HTTPException

from servicedesk.core.errors import EmptyDataset, FetchFailure, ReportError, UnknownPeriod


def to_http_error(exc: ReportError) -> HTTPException:
    if isinstance(exc, FetchFailure):
        return HTTPException(status_code=502, detail=f"request store unavailable: {exc}")
    if isinstance(exc, EmptyDataset):
        return HTTPException(status_code=404, detail="no data")
    if isinstance(exc, UnknownPeriod):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
