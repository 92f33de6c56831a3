from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from dashboard.main import create_app
from dashboard.routers.storage import get_sync_scheduler
from data_connector.google_sheets.utils import build_a1_range
from shared.config.settings import ApplicationSettings
from shared.exceptions import SyncInProgressError
from shared.models.records import CellFormatting, SheetTab

TABS = {
    "Partners": [
        ["Vendor", "Product", "Support Status"],
        ["Acme", "Gateway", "Supported"],
        ["Acme", "Gateway", "Not Supported"],
        ["Beta Co", "Gateway", "Tech Preview"],
    ],
    "Partners WIP": [["Vendor"], ["Draft Corp"]],
    "Certification": [["Vendor", "Certified"], ["Acme", "Yes"], ["Beta Co", "No"]],
}

FORMATTING = {
    "Partners": [
        [None, None, CellFormatting(note="Supported / Not Supported / Tech Preview")],
        [CellFormatting(hyperlink="https://acme.example/partner")],
    ],
}


class _FakeSource:
    def __init__(self, fail_listing: bool = False) -> None:
        self.fail_listing = fail_listing

    async def list_tabs(self):
        if self.fail_listing:
            raise PermissionError("403 Forbidden")
        return [SheetTab(name=name) for name in TABS]

    async def get_values(self, range_name: str):
        return next((rows for name, rows in TABS.items() if build_a1_range(name) == range_name), [])

    async def get_formatting(self, range_name: str):
        return next(
            (rows for name, rows in FORMATTING.items() if build_a1_range(name) == range_name), []
        )


class _FakePersistence:
    def __init__(self) -> None:
        self.saved = []

    def load(self):
        return None

    def save(self, snapshot) -> None:
        self.saved.append(snapshot)


class _BusyScheduler:
    async def trigger_sync(self, trigger: str = "manual"):
        raise SyncInProgressError(started_at="2024-01-01T00:00:00+00:00")


def _client(source=None) -> TestClient:
    app = create_app(
        ApplicationSettings(),
        source=source or _FakeSource(),
        persistence=_FakePersistence(),
        run_scheduler=False,
    )
    return TestClient(app)


@pytest.fixture
def client():
    with _client() as c:
        assert c.post("/api/storage/sync").status_code == 200
        yield c


def test_manual_sync_reports_run(client):
    body = client.post("/api/storage/sync").json()
    assert body["status"] == "success"
    assert body["data"]["record_count"] == 5
    assert body["data"]["sheet_count"] == 2


def test_sheet_names_exclude_wip(client):
    body = client.get("/api/storage/sheets").json()
    assert body["data"]["sheets"] == ["Partners", "Certification"]


def test_get_single_sheet(client):
    data = client.get("/api/storage", params={"sheet": "Partners"}).json()["data"]
    assert data["count"] == 3
    assert data["header_notes"] == {"support_status": "Supported / Not Supported / Tech Preview"}
    first = data["records"][0]["fields"]
    assert first["vendor"] == {
        "kind": "link",
        "text": "Acme",
        "url": "https://acme.example/partner",
        "comment": None,
    }
    assert data["last_sync_time"] is not None


def test_get_all_sheets(client):
    data = client.get("/api/storage").json()["data"]
    assert set(data["sheets"]) == {"Partners", "Certification"}
    assert data["count"] == 5


def test_unknown_sheet_is_empty(client):
    data = client.get("/api/storage", params={"sheet": "Nope"}).json()["data"]
    assert data["records"] == []
    assert data["count"] == 0


def test_search(client):
    data = client.get("/api/storage/search", params={"q": "ACME.EXAMPLE", "sheet": "Partners"}).json()["data"]
    assert data["count"] == 1
    data = client.get("/api/storage/search", params={"q": "beta"}).json()["data"]
    assert data["count"] == 2


def test_filter(client):
    response = client.post(
        "/api/storage/filter",
        params={"sheet": "Partners"},
        json={"vendor": "acme", "support_status": "not"},
    )
    data = response.json()["data"]
    assert [r["id"] for r in data["records"]] == [2]


def test_filter_without_body_returns_everything(client):
    data = client.post("/api/storage/filter", params={"sheet": "Partners"}).json()["data"]
    assert data["count"] == 3


def test_field_values(client):
    data = client.get("/api/storage/fields/vendor/values").json()["data"]
    assert data["values"] == ["Acme", "Beta Co"]


def test_detected_filters(client):
    filters = client.get("/api/storage/filters", params={"sheet": "Partners"}).json()["data"]["filters"]
    assert [(f["role"], f["source_field"]) for f in filters] == [
        ("partner", "vendor"),
        ("status", "support_status"),
    ]


def test_insights(client):
    data = client.get("/api/storage/insights", params={"sheet": "Partners"}).json()["data"]
    assert data["status_counts"] == {"ready": 1, "in-progress": 1, "blocked": 1}
    assert data["by_partner"] == {"Acme": 2, "Beta Co": 1}

    cert = client.get("/api/storage/insights", params={"sheet": "Certification"}).json()["data"]
    assert cert["certification"]["certified"] == 1
    assert cert["certification"]["total"] == 2


def test_stats(client):
    data = client.get("/api/storage/stats").json()["data"]
    assert data["total_records"] == 5
    assert data["records_per_sheet"] == {"Partners": 3, "Certification": 2}


def test_export_csv(client):
    response = client.get("/api/storage/export/csv", params={"sheet": "Partners"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0] == "id,vendor,product,support_status"
    assert lines[1] == "1,Acme,Gateway,Supported"


def test_export_json(client):
    records = client.get("/api/storage/export/json").json()["data"]["records"]
    assert records[0] == {
        "id": 1,
        "sheet": "Partners",
        "vendor": "Acme",
        "product": "Gateway",
        "support_status": "Supported",
    }


def test_export_unknown_format(client):
    assert client.get("/api/storage/export/xml").status_code == 400


def test_sync_in_progress_conflict(client):
    client.app.dependency_overrides[get_sync_scheduler] = lambda: _BusyScheduler()
    try:
        response = client.post("/api/storage/sync")
    finally:
        client.app.dependency_overrides.clear()
    assert response.status_code == 409
    assert response.json()["detail"]["errors"] == ["SYNC_IN_PROGRESS"]


def test_fatal_sync_failure_is_bad_gateway():
    with _client(_FakeSource(fail_listing=True)) as c:
        response = c.post("/api/storage/sync")
        assert response.status_code == 502
        assert c.get("/api/sync/stats").json()["data"]["failed_syncs"] == 1
        assert c.get("/api/health").json()["data"]["status"] == "warning"


def test_health_and_history(client):
    health = client.get("/api/health").json()
    assert health["data"]["status"] == "healthy"

    history = client.get("/api/sync/history", params={"limit": 5}).json()["data"]["history"]
    assert len(history) == 1
    assert history[0]["trigger"] == "manual"

    stats = client.get("/api/sync/stats").json()["data"]
    assert stats["success_rate"] == 100.0
