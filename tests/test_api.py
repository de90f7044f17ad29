from decimal import Decimal

from cashdesk.security import get_password_hash
from cashdesk.utils.clock import utcnow


def _open(client, headers, opening_balance="1000.00", notes=None):
    return client.post("/api/cash/sessions", json={"opening_balance": opening_balance, "notes": notes}, headers=headers)


def _add(client, headers, session_id, **body):
    payload = {"kind": "INFLOW", "amount": "10.00", "description": "sale"}
    payload.update(body)
    return client.post(f"/api/cash/sessions/{session_id}/movements", json=payload, headers=headers)


def test_requires_authentication(client):
    response = client.get("/api/cash/sessions")
    assert response.status_code == 401


def test_login_issues_token(client, db):
    from cashdesk.models import User

    db.add(User(username="boss", password_hash=get_password_hash("s3cret")))
    db.commit()

    bad = client.post("/api/auth/login", data={"username": "boss", "password": "nope"})
    good = client.post("/api/auth/login", data={"username": "boss", "password": "s3cret"})

    assert bad.status_code == 401
    assert good.status_code == 200
    token = good.json()["access_token"]
    assert client.get("/api/cash/sessions", headers={"Authorization": f"Bearer {token}"}).status_code == 200


def test_session_lifecycle(client, owner, owner_headers, other_headers):
    # 1. Abrir caja
    opened = _open(client, owner_headers)
    assert opened.status_code == 201
    session = opened.json()
    assert session["status"] == "OPEN"
    assert session["user_id"] == owner.id
    assert Decimal(session["opening_balance"]) == Decimal("1000.00")
    sid = session["id"]

    # 2. Movimientos
    inflow = _add(client, owner_headers, sid, amount="500.00", description="service A", category="SERVICES")
    outflow = _add(client, owner_headers, sid, kind="OUTFLOW", amount="120.00", description="parts", category="EXPENSES")
    assert inflow.status_code == 201 and outflow.status_code == 201
    assert inflow.json()["category"] == "SERVICES"

    # 3. Otra apertura choca
    conflict = _open(client, other_headers, opening_balance="5")
    assert conflict.status_code == 409
    assert conflict.json()["code"] == "CONFLICT"

    # 4. Estadísticas
    stats = client.get(f"/api/cash/sessions/{sid}/stats", headers=owner_headers).json()
    assert Decimal(stats["current_balance"]) == Decimal("1380.00")
    assert stats["movements_today"] == 2

    # 5. Solo el dueño cierra
    forbidden = client.post(f"/api/cash/sessions/{sid}/close", json={"closing_balance": "1380.00"}, headers=other_headers)
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "FORBIDDEN"

    closed = client.post(f"/api/cash/sessions/{sid}/close", json={"closing_balance": "1380.00"}, headers=owner_headers)
    assert closed.status_code == 200
    assert closed.json()["status"] == "CLOSED"
    assert closed.json()["closed_at"] is not None
    assert Decimal(closed.json()["closing_balance"]) == Decimal("1380.00")

    again = client.post(f"/api/cash/sessions/{sid}/close", json={"closing_balance": "1"}, headers=owner_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "ALREADY_CLOSED"

    # 6. Caja cerrada es inmutable
    late = _add(client, owner_headers, sid)
    assert late.status_code == 409
    assert late.json()["code"] == "SESSION_CLOSED"

    mid = inflow.json()["id"]
    assert client.put(f"/api/cash/sessions/{sid}/movements/{mid}", json={"amount": "1"}, headers=owner_headers).status_code == 409
    assert client.delete(f"/api/cash/sessions/{sid}/movements/{mid}", headers=owner_headers).status_code == 409

    detail = client.get(f"/api/cash/sessions/{sid}", headers=owner_headers).json()
    assert [m["description"] for m in detail["movements"]] == ["service A", "parts"]


def test_movement_validation_and_not_found(client, owner_headers):
    sid = _open(client, owner_headers).json()["id"]

    zero = _add(client, owner_headers, sid, amount="0")
    assert zero.status_code == 422
    assert zero.json()["code"] == "VALIDATION_ERROR"

    blank = _add(client, owner_headers, sid, description="   ")
    assert blank.status_code == 422

    bad_kind = _add(client, owner_headers, sid, kind="SIDEWAYS")
    assert bad_kind.status_code == 422

    missing = _add(client, owner_headers, 999)
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"

    assert client.delete(f"/api/cash/sessions/{sid}/movements/999", headers=owner_headers).status_code == 404
    assert client.get("/api/cash/sessions/999", headers=owner_headers).status_code == 404


def test_update_and_delete_movement(client, owner_headers):
    sid = _open(client, owner_headers).json()["id"]
    mid = _add(client, owner_headers, sid, amount="10.00", description="draft").json()["id"]

    updated = client.put(
        f"/api/cash/sessions/{sid}/movements/{mid}",
        json={"amount": "12.30", "category": "SALES"},
        headers=owner_headers,
    )
    assert updated.status_code == 200
    body = updated.json()
    assert Decimal(body["amount"]) == Decimal("12.30")
    assert body["category"] == "SALES"
    assert body["description"] == "draft"

    negative = client.put(f"/api/cash/sessions/{sid}/movements/{mid}", json={"amount": "-1"}, headers=owner_headers)
    assert negative.status_code == 422

    deleted = client.delete(f"/api/cash/sessions/{sid}/movements/{mid}", headers=owner_headers)
    assert deleted.status_code == 204
    assert client.get(f"/api/cash/sessions/{sid}", headers=owner_headers).json()["movements"] == []


def test_active_session_and_listing(client, owner_headers):
    assert client.get("/api/cash/sessions/active", headers=owner_headers).status_code == 404

    sid = _open(client, owner_headers).json()["id"]
    for i in range(12):
        _add(client, owner_headers, sid, description=f"sale {i}")

    active = client.get("/api/cash/sessions/active", headers=owner_headers).json()
    assert active["id"] == sid
    assert len(active["movements"]) == 10

    listing = client.get("/api/cash/sessions", params={"status": "OPEN", "limit": 5}, headers=owner_headers).json()
    assert listing["pagination"] == {"page": 1, "limit": 5, "total": 1, "total_pages": 1}
    assert listing["data"][0]["id"] == sid

    assert client.get("/api/cash/sessions", params={"limit": 500}, headers=owner_headers).status_code == 422


def test_cash_flow_report(client, owner_headers):
    sid = _open(client, owner_headers).json()["id"]
    _add(client, owner_headers, sid, amount="500.00", description="service A", category="SERVICES")
    _add(client, owner_headers, sid, kind="OUTFLOW", amount="120.00", description="parts", category="EXPENSES")
    today = utcnow().date().isoformat()

    response = client.get("/api/reports/cash-flow", params={"date_from": today, "date_to": today}, headers=owner_headers)

    assert response.status_code == 200
    report = response.json()
    summary = report["summary"]
    assert Decimal(summary["total_inflow"]) == Decimal("500.00")
    assert Decimal(summary["total_outflow"]) == Decimal("120.00")
    assert Decimal(summary["net_balance"]) == Decimal("380.00")
    assert summary["movement_count"] == 2
    assert Decimal(summary["average_ticket"]) == Decimal("310.00")
    assert report["daily_flow"][0]["date"] == today
    assert report["inflow_by_category"][0]["category"] == "SERVICES"

    default_window = client.get("/api/reports/cash-flow", headers=owner_headers).json()
    assert default_window["summary"]["movement_count"] == 2


def test_report_rejects_bad_dates(client, owner_headers):
    malformed = client.get("/api/reports/cash-flow", params={"date_from": "31/12/2024"}, headers=owner_headers)
    assert malformed.status_code == 422

    inverted = client.get(
        "/api/reports/cash-flow", params={"date_from": "2024-03-05", "date_to": "2024-03-01"}, headers=owner_headers
    )
    assert inverted.status_code == 422
    assert inverted.json()["code"] == "VALIDATION_ERROR"


def test_export_report(client, owner_headers):
    sid = _open(client, owner_headers).json()["id"]
    _add(client, owner_headers, sid, amount="42.00", description="oil change", category="SERVICES")

    csv_response = client.get("/api/reports/cash-flow/export", params={"format": "csv"}, headers=owner_headers)
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert "attachment" in csv_response.headers["content-disposition"]
    assert '"oil change";"42,00"' in csv_response.text

    pdf_response = client.get("/api/reports/cash-flow/export", headers=owner_headers)
    assert pdf_response.headers["content-type"] == "application/pdf"
    assert pdf_response.content.startswith(b"%PDF")

    unsupported = client.get("/api/reports/cash-flow/export", params={"format": "docx"}, headers=owner_headers)
    assert unsupported.status_code == 422
    assert unsupported.json()["code"] == "VALIDATION_ERROR"


def test_any_operator_may_open(client, other_user, other_headers):
    response = _open(client, other_headers, opening_balance="0")
    assert response.status_code == 201
    assert response.json()["user_id"] == other_user.id


def test_out_of_range_money_is_a_validation_error(client, owner_headers):
    huge_open = _open(client, owner_headers, opening_balance="1e30")
    assert huge_open.status_code == 422
    assert huge_open.json()["code"] == "VALIDATION_ERROR"

    sid = _open(client, owner_headers).json()["id"]
    for amount in ("1e30", "10000000000"):
        response = _add(client, owner_headers, sid, amount=amount)
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"


def test_unknown_route_keeps_error_shape(client, owner_headers):
    response = client.get("/api/cash/nowhere", headers=owner_headers)
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found", "code": "NOT_FOUND"}
