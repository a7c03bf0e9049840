"""Reports REST API."""
from app.modules.users.auth import AuthService


def _bearer(user_id, username):
    token = AuthService.create_access_token({"user_id": user_id, "sub": username, "role": "ACCOUNTANT"})
    return {"Authorization": f"Bearer {token}"}


def _create(client, headers, name="Fevral", report_date="2026-02-28"):
    r = client.post("/api/reports/groups", json={"name": name, "report_date": report_date}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_requires_bearer_token(client):
    r = client.get("/api/reports/groups")
    assert r.status_code in (401, 403)


def test_invalid_token_is_rejected(client):
    r = client.get("/api/reports/groups", headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == 401


def test_token_with_a_taken_username_cannot_create_groups(client):
    _create(client, _bearer(900001, "kassir"))

    r = client.post(
        "/api/reports/groups",
        json={"name": "Mart", "report_date": "2026-03-31"},
        headers=_bearer(900002, "kassir"),
    )
    assert r.status_code == 401


def test_create_and_list_groups(client, auth_headers):
    group = _create(client, auth_headers)
    assert group["name"] == "Fevral"
    assert group["report_date"] == "2026-02-28"

    r = client.get("/api/reports/groups", headers=auth_headers)
    body = r.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["data"][0]["id"] == group["id"]


def test_blank_name_is_rejected(client, auth_headers):
    r = client.post(
        "/api/reports/groups", json={"name": "   ", "report_date": "2026-02-28"}, headers=auth_headers
    )
    assert r.status_code == 422


def test_search_by_name_and_date(client, auth_headers):
    _create(client, auth_headers, "Fevral hisobot", "2026-02-28")
    _create(client, auth_headers, "Mart", "2026-03-31")

    by_name = client.get("/api/reports/groups", params={"search": "fevral"}, headers=auth_headers)
    assert [g["name"] for g in by_name.json()["data"]] == ["Fevral hisobot"]

    by_date = client.get("/api/reports/groups", params={"search": "2026-03"}, headers=auth_headers)
    assert [g["name"] for g in by_date.json()["data"]] == ["Mart"]


def test_groups_are_private_to_their_owner(client, auth_headers, other_auth_headers):
    group = _create(client, auth_headers)
    r = client.get(f"/api/reports/groups/{group['id']}/rows", headers=other_auth_headers)
    assert r.status_code == 404
    listed = client.get("/api/reports/groups", headers=other_auth_headers).json()
    assert listed["data"] == []


def test_update_group(client, auth_headers):
    group = _create(client, auth_headers)
    r = client.patch(
        f"/api/reports/groups/{group['id']}",
        json={"name": "Fevral (tuzatilgan)"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Fevral (tuzatilgan)"
    assert r.json()["data"]["report_date"] == "2026-02-28"


def test_upsert_inserts_updates_and_removes_rows(client, auth_headers):
    group = _create(client, auth_headers)
    url = f"/api/reports/groups/{group['id']}/rows"

    first = client.put(url, json={"rows": [
        {"sabablar": "Savdo", "tovar": 1000, "ok": 100},
        {"sabablar": "Ijara", "rasxod": 300},
    ]}, headers=auth_headers).json()["data"]
    assert [row["position"] for row in first] == [0, 1]
    assert first[0]["itog"] == 900
    assert first[1]["itog"] == -300
    savdo_id = first[0]["id"]

    second = client.put(url, json={"rows": [
        {"sabablar": "Yangi", "pul": 5},
        {"id": savdo_id, "sabablar": "Savdo", "tovar": 2000, "ok": 100},
    ]}, headers=auth_headers).json()["data"]

    assert [row["sabablar"] for row in second] == ["Yangi", "Savdo"]
    assert second[1]["id"] == savdo_id
    assert second[1]["tovar"] == 2000
    assert first[1]["id"] not in {row["id"] for row in second}


def test_negative_amounts_are_rejected(client, auth_headers):
    group = _create(client, auth_headers)
    r = client.put(
        f"/api/reports/groups/{group['id']}/rows",
        json={"rows": [{"sabablar": "x", "tovar": -5}]},
        headers=auth_headers,
    )
    assert r.status_code == 422


def test_amounts_beyond_bigint_are_rejected(client, auth_headers):
    group = _create(client, auth_headers)
    r = client.put(
        f"/api/reports/groups/{group['id']}/rows",
        json={"rows": [{"sabablar": "x", "tovar": 10**20}]},
        headers=auth_headers,
    )
    assert r.status_code == 422

    r = client.put(
        f"/api/reports/groups/{group['id']}/rows",
        json={"rows": [{"sabablar": "x", "tovar": 2**63 - 1}]},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.text
    assert r.json()["data"][0]["tovar"] == 2**63 - 1


def test_totals(client, auth_headers):
    group = _create(client, auth_headers)
    client.put(f"/api/reports/groups/{group['id']}/rows", json={"rows": [
        {"sabablar": "a", "tovar": 1000, "rasxod": 50, "vazvirat": 50, "pul": 200, "kilik_ozi": 100},
        {"sabablar": "b", "tovar": 500, "ok": 100},
    ]}, headers=auth_headers)

    totals = client.get(f"/api/reports/groups/{group['id']}/totals", headers=auth_headers).json()["data"]
    assert totals["row_count"] == 2
    assert totals["tovar"] == 1500
    assert totals["ok"] == 100
    assert totals["itog"] == 600 + 400


def test_delete_rows_keeps_group(client, auth_headers):
    group = _create(client, auth_headers)
    url = f"/api/reports/groups/{group['id']}/rows"
    client.put(url, json={"rows": [{"sabablar": "a", "tovar": 1}]}, headers=auth_headers)

    assert client.delete(url, headers=auth_headers).status_code == 204
    assert client.get(url, headers=auth_headers).json()["data"] == []
    assert len(client.get("/api/reports/groups", headers=auth_headers).json()["data"]) == 1


def test_delete_group_removes_its_rows(client, auth_headers):
    group = _create(client, auth_headers)
    client.put(
        f"/api/reports/groups/{group['id']}/rows",
        json={"rows": [{"sabablar": "a", "tovar": 1}]},
        headers=auth_headers,
    )

    r = client.delete(f"/api/reports/groups/{group['id']}", headers=auth_headers)
    assert r.status_code == 204
    assert client.get(f"/api/reports/groups/{group['id']}/rows", headers=auth_headers).status_code == 404
    assert client.get("/api/reports/groups", headers=auth_headers).json()["data"] == []


def test_missing_group_is_404(client, auth_headers):
    r = client.get("/api/reports/groups/999999/totals", headers=auth_headers)
    assert r.status_code == 404


def test_export_downloads(client, auth_headers):
    group = _create(client, auth_headers, "Fevral", "2026-02-28")
    client.put(
        f"/api/reports/groups/{group['id']}/rows",
        json={"rows": [{"sabablar": "Savdo", "tovar": 1000}, {}]},
        headers=auth_headers,
    )

    pdf = client.get(f"/api/reports/groups/{group['id']}/export/pdf", headers=auth_headers)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")
    assert "Fevral-2026-02-28.pdf" in pdf.headers["content-disposition"]

    xlsx = client.get(f"/api/reports/groups/{group['id']}/export/xlsx", headers=auth_headers)
    assert xlsx.status_code == 200
    assert xlsx.content[:2] == b"PK"


def test_unknown_export_format_is_rejected(client, auth_headers):
    group = _create(client, auth_headers)
    r = client.get(f"/api/reports/groups/{group['id']}/export/docx", headers=auth_headers)
    assert r.status_code == 422
