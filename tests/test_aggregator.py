from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from servicedesk.core.aggregator import (
    count_by_period,
    count_by_status,
    filter_quarter,
    flatten_rows,
    group_by_issue,
)
from servicedesk.core.periods import PeriodKey, PeriodUnit
from servicedesk.core.validation import parse_records


def _row(record_id: int, issue: str, created_at: str, **extra) -> dict:
    row = {
        "id": record_id,
        "issue": issue,
        "workgroup": "IT",
        "requestedby": f"user{record_id}",
        "serviceby": "tech",
        "repairDone": "replaced part",
        "controlno": f"CN-{record_id:03d}",
        "status": "Completed",
        "createdAt": created_at,
    }
    row.update(extra)
    return row


def _records(rows: list[dict]):
    parsed = parse_records(rows)
    assert not parsed.malformed
    return parsed.records


def test_group_by_issue_keeps_first_seen_order():
    records = _records(
        [
            _row(1, "Printer Jam", "2024-01-03T09:00:00Z"),
            _row(2, "Network Down", "2024-01-04T09:00:00Z"),
            _row(3, "Printer Jam", "2024-01-05T09:00:00Z"),
        ]
    )

    result = group_by_issue(records)

    assert [group.issue for group in result.groups] == ["Printer Jam", "Network Down"]
    assert [group.count for group in result.groups] == [2, 1]
    assert [record.id for record in result.groups[0].records] == [1, 3]
    assert result.total_count == 3
    assert sum(group.count for group in result.groups) == result.total_count


def test_group_by_issue_on_empty_input():
    result = group_by_issue([])

    assert result.groups == ()
    assert result.total_count == 0
    assert result.is_empty


def test_group_by_issue_is_case_sensitive_after_trimming():
    records = _records(
        [
            _row(1, "  VPN  ", "2024-02-01T08:00:00Z"),
            _row(2, "vpn", "2024-02-01T09:00:00Z"),
            _row(3, "VPN", "2024-02-01T10:00:00Z"),
        ]
    )

    result = group_by_issue(records)

    assert [(group.issue, group.count) for group in result.groups] == [("VPN", 2), ("vpn", 1)]


def test_malformed_rows_are_reported_not_grouped():
    parsed = parse_records(
        [
            _row(1, "Printer Jam", "2024-01-03T09:00:00Z"),
            {"id": 2, "issue": "", "createdAt": "2024-01-03T10:00:00Z"},
            {"id": 3, "issue": "Keyboard"},
            "not a record",
            _row(5, "Scanner", "2024-01-03T09:00:00Z", updatedAt="2024-01-01T09:00:00Z"),
        ]
    )

    result = group_by_issue(parsed.records, skipped=parsed.malformed)

    assert result.total_count == 1
    assert result.skipped_count == 4
    assert [item.position for item in result.skipped] == [1, 2, 3, 4]
    assert [item.record_id for item in result.skipped] == ["2", "3", None, "5"]


def test_count_by_period_uses_window_start_keys():
    records = _records(
        [
            _row(1, "A", "2024-01-15T09:00:00Z"),
            _row(2, "A", "2024-02-15T09:00:00Z"),
            _row(3, "B", "2024-04-01T09:00:00Z"),
            _row(4, "B", "2023-12-31T23:00:00Z"),
        ]
    )

    assert count_by_period(records, PeriodUnit.MONTH) == {
        PeriodKey(2023, 11): 1,
        PeriodKey(2024, 0): 1,
        PeriodKey(2024, 1): 1,
        PeriodKey(2024, 3): 1,
    }
    assert count_by_period(records, PeriodUnit.QUARTER) == {
        PeriodKey(2023, 9): 1,
        PeriodKey(2024, 0): 2,
        PeriodKey(2024, 3): 1,
    }
    assert count_by_period(records, PeriodUnit.YEAR) == {PeriodKey(2023, 0): 1, PeriodKey(2024, 0): 3}
    assert list(count_by_period(records, PeriodUnit.YEAR)) == sorted(count_by_period(records, PeriodUnit.YEAR))


def test_count_by_period_converts_into_report_timezone():
    from zoneinfo import ZoneInfo

    records = _records([_row(1, "A", "2023-12-31T20:00:00Z")])

    assert count_by_period(records, PeriodUnit.MONTH, ZoneInfo("Asia/Manila")) == {PeriodKey(2024, 0): 1}


def test_count_by_status_reports_every_status():
    records = _records(
        [
            _row(1, "A", "2024-01-01T09:00:00Z", status="Pending"),
            _row(2, "A", "2024-01-01T09:00:00Z", status="InProgress"),
            _row(3, "A", "2024-01-01T09:00:00Z", status="Completed"),
            _row(4, "A", "2024-01-01T09:00:00Z", status="Completed"),
        ]
    )

    assert count_by_status(records) == {"Pending": 1, "In Progress": 1, "Completed": 2}
    assert count_by_status([]) == {"Pending": 0, "In Progress": 0, "Completed": 0}


def test_filter_quarter_matches_year_and_months():
    records = _records(
        [
            _row(1, "A", "2024-01-10T09:00:00Z"),
            _row(2, "A", "2024-05-10T09:00:00Z"),
            _row(3, "A", "2023-02-10T09:00:00Z"),
            _row(4, "A", "2024-03-31T09:00:00Z"),
        ]
    )

    assert [record.id for record in filter_quarter(records, 2024, 1)] == [1, 4]
    assert [record.id for record in filter_quarter(records, 2024, "Q2")] == [2]
    assert filter_quarter(records, 2024, 4) == []


def test_flatten_rows_prints_issue_on_first_row_only():
    records = _records(
        [
            _row(1, "Printer Jam", "2024-01-03T09:00:00Z", requestedby="Ana"),
            _row(2, "Network Down", "2024-01-04T09:00:00Z", requestedby="Ben"),
            _row(3, "Printer Jam", "2024-01-05T09:00:00Z", requestedby="Cy", serviceby=None),
        ]
    )

    rows = flatten_rows(group_by_issue(records))

    assert [row[:3] for row in rows] == [
        ["Printer Jam", 2, "Ana"],
        [None, None, "Cy"],
        ["Network Down", 1, "Ben"],
    ]
    assert rows[1][5] is None
    assert rows[0][6] == datetime(2024, 1, 3, 9, 0, tzinfo=timezone.utc)
    assert rows[0][7] == rows[0][6]


def test_grouping_partitions_varied_sequences():
    import random

    rng = random.Random(20240105)
    labels = ["Printer Jam", "Network Down", "VPN", "Aircon", "Scanner"]
    for size in (1, 2, 7, 25, 60):
        pool = labels[: rng.randint(1, len(labels))]
        rows = [
            _row(index, rng.choice(pool), f"2024-03-{rng.randint(1, 28):02d}T08:00:00Z")
            for index in range(size)
        ]
        records = _records(rows)

        result = group_by_issue(records)

        assert result.total_count == len(records)
        grouped_ids = [record.id for group in result.groups for record in group.records]
        assert sorted(grouped_ids) == [record.id for record in records]
        for group in result.groups:
            assert all(record.issue == group.issue for record in group.records)
            positions = [records.index(record) for record in group.records]
            assert positions == sorted(positions)
        first_seen = list(dict.fromkeys(record.issue for record in records))
        assert [group.issue for group in result.groups] == first_seen
