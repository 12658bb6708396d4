"""Application services."""

from .periods import PeriodCount, PeriodSelector, RecordCollection
from .reports import ReportService, configure_report_service, get_report_service, reset_report_service

__all__ = [
    "PeriodCount",
    "PeriodSelector",
    "RecordCollection",
    "ReportService",
    "configure_report_service",
    "get_report_service",
    "reset_report_service",
]
