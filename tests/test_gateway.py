"""HTTP gateway against a mocked transport."""
import asyncio
import json
from datetime import date

import httpx
import pytest

from app.modules.editor.gateway import (
    GatewayError,
    GatewayUnavailableError,
    HttpReportGateway,
)
from app.modules.reports.totals import ReportRow

BASE = "http://reports.test/api"


def _gateway(handler, base_url=BASE):
    return HttpReportGateway(base_url=base_url, token="t0k", transport=httpx.MockTransport(handler))


def _wrapped(data, status=200):
    return httpx.Response(status, json={"success": True, "data": data})


def test_list_groups_unwraps_envelope():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        return _wrapped([{"id": 3, "name": "Mart", "report_date": "2026-03-31", "user_id": 1}])

    groups = asyncio.run(_gateway(handler).list_groups())
    assert seen == {"url": f"{BASE}/reports/groups", "auth": "Bearer t0k"}
    assert groups[0].id == 3
    assert groups[0].report_date == date(2026, 3, 31)


def test_upsert_sends_int_amounts_and_reads_ids_back():
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["body"] = json.loads(request.content)
        return _wrapped([
            {"id": 11, "group_id": 2, "position": 0, "sabablar": "Savdo",
             "tovar": 1500, "ok": 0, "rasxod": 0, "vazvirat": 0, "pul": 0,
             "kilik_ozi": 0, "itog": 1500},
        ])

    rows = asyncio.run(_gateway(handler).upsert_rows(2, [ReportRow(sabablar="Savdo", tovar="1500")]))
    assert captured["method"] == "PUT"
    assert captured["body"]["rows"][0]["tovar"] == 1500
    assert captured["body"]["rows"][0]["ok"] == 0
    assert rows == [ReportRow(sabablar="Savdo", tovar="1500", id=11)]


def test_delete_handles_no_content():
    def handler(request):
        assert request.method == "DELETE"
        return httpx.Response(204)

    assert asyncio.run(_gateway(handler).delete_group(4)) is None


def test_error_status_becomes_gateway_error_with_detail():
    def handler(request):
        return httpx.Response(404, json={"detail": "Report group 9 not found"})

    with pytest.raises(GatewayError) as exc_info:
        asyncio.run(_gateway(handler).list_rows(9))
    assert exc_info.value.status_code == 404
    assert "not found" in exc_info.value.message
    assert not isinstance(exc_info.value, GatewayUnavailableError)


def test_connection_failure_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GatewayUnavailableError):
        asyncio.run(_gateway(handler).list_groups())


def test_unhealthy_backend_fails_ping():
    def handler(request):
        return httpx.Response(503, json={"success": False, "detail": "Database unavailable"})

    with pytest.raises(GatewayUnavailableError):
        asyncio.run(_gateway(handler).ping())


def test_requests_after_aclose_reopen_the_client():
    gateway = _gateway(lambda request: _wrapped([]))

    async def scenario():
        await gateway.list_groups()
        await gateway.aclose()
        await gateway.ping()
        return await gateway.list_groups()

    assert asyncio.run(scenario()) == []


@pytest.mark.parametrize("url", ["", "reports.test/api", "ftp://reports.test"])
def test_bad_base_url_is_not_configured(url):
    gateway = _gateway(lambda request: _wrapped([]), base_url=url)
    assert gateway.is_configured is False
    with pytest.raises(GatewayUnavailableError):
        asyncio.run(gateway.list_groups())


def test_default_settings_point_at_a_valid_api():
    from app.core.config import config, is_valid_url

    assert config.is_api_configured
    assert is_valid_url("https://example.test/api")
    assert not is_valid_url("localhost:8000")
