from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

sys.path.append(str(Path(__file__).resolve().parents[1]))

from servicedesk.application import ReportService, configure_report_service, reset_report_service
from servicedesk.core.errors import FetchFailure
from servicedesk.core.settings import ReportLayout, Settings
from servicedesk.infrastructure import InMemoryRequestStore

SETTINGS = Settings(layout=ReportLayout(chart_figsize=(4.0, 3.0), chart_dpi=50))


def _row(record_id: int, issue: str, created_at: str, status: str = "Pending") -> dict:
    return {
        "id": record_id,
        "issue": issue,
        "workgroup": "Registrar",
        "requestedby": f"staff{record_id}",
        "serviceby": "helpdesk",
        "repairDone": "",
        "controlno": f"CN-{record_id}",
        "status": status,
        "createdAt": created_at,
    }


class BrokenStore(InMemoryRequestStore):
    async def fetch_records_by_month(self, month_id):
        raise FetchFailure("store offline")


@pytest.fixture(autouse=True)
def reset_state():
    reset_report_service()
    yield
    reset_report_service()


@pytest.fixture()
def store() -> InMemoryRequestStore:
    store = InMemoryRequestStore()
    store.add_year("y24", 2024)
    store.add_year("y23", 2023)
    january = store.month_id("y24", 0)
    store.add_record(january, _row(1, "Printer Jam", "2024-01-03T09:00:00Z", "Completed"))
    store.add_record(january, _row(2, "Network Down", "2024-01-04T09:00:00Z", "InProgress"))
    store.add_record(january, _row(3, "Printer Jam", "2024-01-05T09:00:00Z"))
    store.add_record(january, {"id": 4, "issue": "   ", "createdAt": "2024-01-06T09:00:00Z"})
    store.add_record(store.month_id("y24", 6), _row(5, "Aircon", "2024-07-01T09:00:00Z"))
    return store


@pytest.fixture()
def client(store):
    configure_report_service(ReportService(store, SETTINGS))
    from servicedesk.app import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


def test_periods_listing(client):
    years = client.get("/api/periods/years").json()["items"]
    assert [item["year"] for item in years] == [2024, 2023]

    months = client.get("/api/periods/years/y24/months").json()["items"]
    assert len(months) == 12
    assert months[0] == {"id": "y24-01", "month": "January", "index": 0}

    assert client.get("/api/periods/years/unknown/months").status_code == 404


def test_month_report(client):
    response = client.get("/api/reports/months/y24-01")
    assert response.status_code == 200
    data = response.json()

    assert data["total_count"] == 3
    assert data["groups"] == [{"issue": "Printer Jam", "count": 2}, {"issue": "Network Down", "count": 1}]
    assert [item["percentage"] for item in data["slices"]] == [66.7, 33.3]
    assert data["rows"][1][:3] == [None, None, "staff3"]
    assert [item["record_id"] for item in data["skipped"]] == ["4"]


def test_year_summary(client):
    data = client.get("/api/reports/years/y24/summary").json()

    assert data["year"] == 2024
    assert data["total_count"] == 4
    assert data["status"] == {"Pending": 2, "In Progress": 1, "Completed": 1}
    assert [(item["label"], item["count"]) for item in data["months"]] == [("January 2024", 3), ("July 2024", 1)]
    assert [(item["label"], item["count"]) for item in data["quarters"]] == [("Q1 2024", 3), ("Q3 2024", 1)]


def test_quarter_report(client):
    assert client.get("/api/reports/years/y24/quarters/Q3").json()["total_count"] == 1
    assert client.get("/api/reports/years/y24/quarters/2").json()["total_count"] == 0
    assert client.get("/api/reports/years/y24/quarters/9").status_code == 400


def test_monthly_export_download(client):
    response = client.get("/api/reports/years/y24/months/y24-01/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "Monthly_Report_January_2024.xlsx" in response.headers["content-disposition"]
    sheet = load_workbook(BytesIO(response.content)).active
    assert sheet.max_row == 4
    assert len(sheet._images) == 1


def test_quarterly_csv_export(client):
    response = client.get("/api/reports/years/y24/quarters/1/export", params={"format": "csv"})

    assert response.status_code == 200
    assert "Quarterly_Report_2024_Q1.csv" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Issue,Occurrences,Requested By")
    assert len(lines) == 4


def test_empty_export_is_not_found(client):
    response = client.get("/api/reports/years/y23/export")

    assert response.status_code == 404
    assert response.json()["detail"] == "no data"


def test_unknown_year_export(client):
    assert client.get("/api/reports/years/nope/export").status_code == 404


def test_store_failure_maps_to_bad_gateway():
    store = BrokenStore()
    store.add_year("y24", 2024)
    configure_report_service(ReportService(store, SETTINGS))
    from servicedesk.app import create_app

    with TestClient(create_app()) as client:
        response = client.get("/api/reports/years/y24")

    assert response.status_code == 502


def test_unknown_month_report_is_not_found(client):
    response = client.get("/api/reports/months/nope")

    assert response.status_code == 404
    assert "nope" in response.json()["detail"]
