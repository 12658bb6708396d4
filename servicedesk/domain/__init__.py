"""Domain layer definitions."""

from .reports import (
    AggregationResult,
    ChartSlice,
    IssueGroup,
    MalformedRecord,
    MonthRef,
    ReportArtifact,
    WatchState,
    YearRef,
)

__all__ = [
    "AggregationResult",
    "ChartSlice",
    "IssueGroup",
    "MalformedRecord",
    "MonthRef",
    "ReportArtifact",
    "WatchState",
    "YearRef",
]
