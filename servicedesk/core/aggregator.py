"""Pure grouping and counting over request records.

Nothing in this module performs I/O.  Group order is always the order in
which an issue label is first met while scanning the input, because the
on-screen table, the chart legend and the exported sheet all print the
label only on a group's first row.
"""
from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Iterable, Sequence

from servicedesk.core.periods import PeriodKey, PeriodUnit, period_key, quarter_months
from servicedesk.core.schema import STATUSES, RequestRecord
from servicedesk.domain import AggregationResult, IssueGroup, MalformedRecord

REPORT_COLUMNS: tuple[str, ...] = (
    "Issue",
    "Occurrences",
    "Requested By",
    "Workgroup",
    "Repair Done",
    "Service By",
    "Date Requested",
    "Date Accomplished",
)


def group_by_issue(
    records: Iterable[RequestRecord],
    *,
    skipped: Sequence[MalformedRecord] = (),
) -> AggregationResult:
    buckets: dict[str, list[RequestRecord]] = {}
    total = 0
    for record in records:
        buckets.setdefault(record.issue, []).append(record)
        total += 1

    groups = tuple(IssueGroup(issue=issue, records=tuple(items)) for issue, items in buckets.items())
    return AggregationResult(groups=groups, total_count=total, skipped=tuple(skipped))


def count_by_period(
    records: Iterable[RequestRecord],
    unit: PeriodUnit,
    tz: tzinfo | None = None,
) -> dict[PeriodKey, int]:
    """Count records per window; each key is the PeriodKey of its window start."""

    counts: dict[PeriodKey, int] = {}
    for record in records:
        key = period_key(record.created_at, tz).window_start(unit)
        counts[key] = counts.get(key, 0) + 1
    return dict(sorted(counts.items()))


def count_by_status(records: Iterable[RequestRecord]) -> dict[str, int]:
    counts = {status: 0 for status in STATUSES}
    for record in records:
        counts[record.status] = counts.get(record.status, 0) + 1
    return counts


def _in_quarter(moment: datetime, year: int, months: tuple[int, int, int], tz: tzinfo | None) -> bool:
    key = period_key(moment, tz)
    return key.year == year and key.month in months


def filter_quarter(
    records: Iterable[RequestRecord],
    year: int,
    quarter: int | str,
    tz: tzinfo | None = None,
) -> list[RequestRecord]:
    months = quarter_months(quarter)
    return [record for record in records if _in_quarter(record.created_at, year, months, tz)]


def filter_quarter_skipped(
    skipped: Iterable[MalformedRecord],
    year: int,
    quarter: int | str,
    tz: tzinfo | None = None,
) -> list[MalformedRecord]:
    """Keep diagnostics dated inside the quarter, and those that carry no usable date."""

    months = quarter_months(quarter)
    return [
        item for item in skipped if item.created_at is None or _in_quarter(item.created_at, year, months, tz)
    ]


def flatten_rows(aggregation: AggregationResult) -> list[list[object]]:
    """Expand groups into one table row per record, in REPORT_COLUMNS order."""

    rows: list[list[object]] = []
    for group in aggregation.groups:
        for index, record in enumerate(group.records):
            first = index == 0
            rows.append(
                [
                    group.issue if first else None,
                    group.count if first else None,
                    record.requested_by,
                    record.workgroup,
                    record.repair_done,
                    record.service_by,
                    record.created_at,
                    record.updated_at,
                ]
            )
    return rows
