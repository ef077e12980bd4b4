import httpx
import pytest

from reportsync.main import create_app
from reportsync.repositories.report_repository import ReportRepository


@pytest.fixture
async def app(settings, offline_remote, offline_directory, offline_validation, cache):
    reports = ReportRepository(
        cache, offline_remote, offline_directory, settings, validation=offline_validation
    )
    await reports.open()

    app = create_app(settings)
    app.state.remote = offline_remote
    app.state.categories = offline_directory
    app.state.validation = offline_validation
    app.state.reports = reports
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


REPORT = {
    "title": "Pothole on 5th avenue",
    "description": "Deep pothole in the right lane, cars swerve to avoid it",
    "category_id": "default-1",
    "location": {"latitude": 4.6, "longitude": -74.1},
}


async def test_health_reports_backend_state(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "backend": "offline"}


async def test_create_and_read_report(client):
    r = await client.post("/reports", json=REPORT)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["tier"] == "local"
    report_id = body["report"]["id"]

    r = await client.get(f"/reports/{report_id}")
    assert r.status_code == 200
    assert r.json()["title"] == REPORT["title"]

    r = await client.get("/reports/mine")
    assert [item["id"] for item in r.json()["data"]] == [report_id]

    r = await client.get("/reports/pending")
    assert len(r.json()["data"]) == 1


async def test_rejected_report_is_a_result_not_an_error(client):
    r = await client.post("/reports", json={**REPORT, "title": ""})
    assert r.status_code == 200
    assert r.json()["success"] is False
    assert r.json()["error"] == "The title is required"


async def test_out_of_range_location_is_a_result_not_a_422(client):
    r = await client.post(
        "/reports", json={**REPORT, "location": {"latitude": 95, "longitude": 10}}
    )
    assert r.status_code == 200
    assert r.json()["success"] is False
    assert r.json()["error"] == "Latitude must be between -90 and 90 degrees"


async def test_list_reports_uses_local_tier_when_offline(client):
    await client.post("/reports", json=REPORT)
    r = await client.get("/reports", params={"category_id": "default-1"})
    body = r.json()
    assert body["tier"] == "local"
    assert len(body["data"]) == 1

    r = await client.get("/reports/map")
    assert r.json()["data"] == []


async def test_status_update(client):
    report_id = (await client.post("/reports", json=REPORT)).json()["report"]["id"]

    r = await client.patch(f"/reports/{report_id}/status", json={"status": "resolved"})
    assert r.status_code == 200
    assert r.json()["status"] == "resolved"

    r = await client.patch("/reports/999/status", json={"status": "resolved"})
    assert r.status_code == 404

    r = await client.patch(f"/reports/{report_id}/status", json={"status": "archived"})
    assert r.status_code == 422


async def test_missing_report_is_404(client):
    assert (await client.get("/reports/12345")).status_code == 404


async def test_stats_and_sync(client):
    await client.post("/reports", json=REPORT)

    stats = (await client.get("/reports/stats")).json()
    assert stats["total"] == 1
    assert stats["pending_sync"] == 1

    r = await client.post("/reports/sync")
    assert r.json() == {"reconciled": 0, "pending": 1}


async def test_category_routes(client):
    r = await client.get("/categories")
    assert len(r.json()) == 6

    r = await client.get("/categories/search", params={"q": "transport"})
    assert [c["id"] for c in r.json()] == ["default-2"]

    assert (await client.get("/categories/default-4")).json()["name"] == "Safety"
    assert (await client.get("/categories/nope")).status_code == 404

    r = await client.post("/categories/refresh")
    assert r.json() == {"success": False, "tier": "defaults"}


async def test_validation_routes(client):
    r = await client.post("/validation", json={**REPORT, "title": ""})
    verdict = r.json()
    assert verdict["is_valid"] is False
    assert "The title is required" in verdict["errors"]

    r = await client.post("/validation/decision", json=REPORT)
    assert r.json()["can_submit"] is True

    r = await client.post("/validation/recommendations", json=REPORT)
    assert r.status_code == 200
    assert isinstance(r.json(), list)
