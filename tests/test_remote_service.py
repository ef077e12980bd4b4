import json

import httpx
import pytest

from reportsync.core.config import Settings
from reportsync.core.errors import RemoteUnavailableError
from reportsync.services.remote_service import HttpRemoteService


def _service(handler, **overrides) -> HttpRemoteService:
    settings = Settings(
        _env_file=None,
        api_base_url="http://backend.test/api",
        remote_timeout_seconds=1.0,
        **overrides,
    )
    return HttpRemoteService(settings, transport=httpx.MockTransport(handler))


async def test_create_report_posts_payload_with_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"success": True, "data": {"id": 7}})

    service = _service(handler, api_token="secret")
    res = await service.create_report({"title": "Pothole"})
    await service.close()

    assert res.success and res.data == {"id": 7}
    assert seen["path"] == "/api/reports"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {"title": "Pothole"}


async def test_list_reports_sends_filters_as_query():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/reports/mapa"
        assert request.url.params["status"] == "new"
        return httpx.Response(200, json={"success": True, "data": []})

    service = _service(handler)
    res = await service.list_map_reports({"status": "new"})
    assert res.success and res.data == []


async def test_http_error_status_raises_with_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"success": False, "message": "boom"})

    service = _service(handler)
    with pytest.raises(RemoteUnavailableError) as exc:
        await service.list_reports()
    assert exc.value.status_code == 500
    assert "boom" in str(exc.value)


async def test_transport_failure_raises_remote_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    service = _service(handler)
    with pytest.raises(RemoteUnavailableError):
        await service.list_my_reports()
    assert await service.health() is False


async def test_non_envelope_body_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[1, 2, 3])

    service = _service(handler)
    with pytest.raises(RemoteUnavailableError):
        await service.list_reports()


async def test_category_lookup_and_listing():
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/categories":
            return httpx.Response(
                200,
                json={"success": True, "data": [{"id": "c1", "name": "Water"}]},
            )
        if path == "/api/categories/c1":
            return httpx.Response(200, json={"success": True, "data": {"id": "c1", "name": "Water"}})
        return httpx.Response(404, json={"success": False, "message": "not found"})

    service = _service(handler)
    categories = await service.list_categories()
    assert [c.id for c in categories] == ["c1"]
    assert (await service.get_category("c1")).name == "Water"
    assert await service.get_category("missing") is None


async def test_rejected_category_listing_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "maintenance"})

    service = _service(handler)
    with pytest.raises(RemoteUnavailableError):
        await service.list_categories()
