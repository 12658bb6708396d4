"""Domain entities for report aggregation and request monitoring."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from servicedesk.core.schema import RequestRecord


@dataclass(frozen=True, slots=True)
class MalformedRecord:
    """Diagnostic for a store row that was excluded from aggregation."""

    position: int
    record_id: str | None
    reason: str
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class IssueGroup:
    """All records sharing one issue label, in input order."""

    issue: str
    records: tuple["RequestRecord", ...]

    @property
    def count(self) -> int:
        return len(self.records)


@dataclass(frozen=True, slots=True)
class AggregationResult:
    """Issue groups in first-seen order plus the totals they were built from."""

    groups: tuple[IssueGroup, ...] = ()
    total_count: int = 0
    skipped: tuple[MalformedRecord, ...] = ()

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def is_empty(self) -> bool:
        return self.total_count == 0


@dataclass(frozen=True, slots=True)
class ChartSlice:
    label: str
    value: int
    percentage: float


@dataclass(slots=True)
class WatchState:
    """Head of the request feed as last observed by a single watcher."""

    last_seen_id: str | int | None = None
    last_seen_created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class YearRef:
    id: str | int
    year: int


@dataclass(frozen=True, slots=True)
class MonthRef:
    id: str | int
    month: str
    index: int
    year_id: str | int | None = None


@dataclass(slots=True)
class ReportArtifact:
    """Serialized export together with the aggregation it was built from."""

    filename: str
    content: bytes
    media_type: str
    aggregation: AggregationResult
    slices: list[ChartSlice] = field(default_factory=list)
