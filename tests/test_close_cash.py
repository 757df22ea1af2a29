from datetime import date


CLOSE = {
    "close_date": "2026-03-01",
    "cash_amount": "100.00",
    "card_amount": "50.00",
    "mobile_amount": "25.50",
    "bank_transfer_amount": "0",
    "total_amount": "175.50",
}


def test_close_day_once(client, admin_headers):
    response = client.post("/api/close-cash/close", json=CLOSE, headers=admin_headers)
    assert response.status_code == 201
    close_id = response.json()["close_id"]

    again = client.post("/api/close-cash/close", json=CLOSE, headers=admin_headers)
    assert again.status_code == 409
    assert again.json()["error"] == "Cash has already been closed for this date"

    record = client.get(f"/api/close-cash/{close_id}", headers=admin_headers).json()
    assert record["created_by"] == "admin"
    assert client.get("/api/close-cash/status/2026-03-01", headers=admin_headers).json()["isClosed"] is True


def test_total_must_match_methods(client, admin_headers):
    body = {**CLOSE, "total_amount": "180.00"}
    response = client.post("/api/close-cash/validate", json=body, headers=admin_headers)
    assert response.json() == {
        "valid": False,
        "error": "Total amount (180.00) does not match sum of payment methods (175.50)",
    }


def test_rounding_within_a_cent_is_accepted(client, admin_headers):
    body = {**CLOSE, "total_amount": "175.51"}
    assert client.post("/api/close-cash/validate", json=body, headers=admin_headers).json()["valid"] is True


def test_missing_fields_and_negative_amounts(client, admin_headers):
    missing = client.post("/api/close-cash/validate", json={"cash_amount": "1"}, headers=admin_headers).json()
    assert missing["error"] == "Close date and total amount are required"

    negative = client.post("/api/close-cash/close", json={**CLOSE, "cash_amount": "-1"}, headers=admin_headers)
    assert negative.status_code == 400
    assert negative.json()["error"] == "Amounts cannot be negative"


def test_daily_summary_reports_payments(client, admin_headers, make_order):
    order = make_order()
    client.post("/api/payments/", json={"order_id": order["order_id"], "amount": "5", "payment_method": "cash"}, headers=admin_headers)

    summary = client.get("/api/close-cash/daily-summary", headers=admin_headers).json()
    assert summary["date"] == date.today().isoformat()
    assert summary["orders"]["total_orders"] == 1
    assert summary["isClosed"] is False


def test_unclosed_dates(client, admin_headers):
    client.post("/api/close-cash/close", json=CLOSE, headers=admin_headers)
    body = client.get(
        "/api/close-cash/unclosed-dates",
        params={"date_from": "2026-02-28", "date_to": "2026-03-02"},
        headers=admin_headers,
    ).json()
    assert body["unclosedDates"] == ["2026-02-28", "2026-03-02"]


def test_update_requires_manager_and_consistent_total(client, admin_headers, staff_headers):
    close_id = client.post("/api/close-cash/close", json=CLOSE, headers=admin_headers).json()["close_id"]

    assert client.put(f"/api/close-cash/{close_id}", json={"notes": "x"}, headers=staff_headers).status_code == 403

    bad = client.put(f"/api/close-cash/{close_id}", json={"cash_amount": "90.00"}, headers=admin_headers)
    assert bad.status_code == 400

    good = client.put(
        f"/api/close-cash/{close_id}",
        json={"cash_amount": "90.00", "total_amount": "165.50"},
        headers=admin_headers,
    )
    assert good.status_code == 200
    assert float(good.json()["record"]["total_amount"]) == 165.5


def test_history_is_paginated(client, admin_headers):
    for day in ("2026-03-01", "2026-03-02", "2026-03-03"):
        client.post("/api/close-cash/close", json={**CLOSE, "close_date": day}, headers=admin_headers)

    page = client.get("/api/close-cash/history", params={"page": 1, "limit": 2}, headers=admin_headers).json()
    assert len(page["records"]) == 2
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}


def test_validate_reports_already_closed_date(client, admin_headers):
    assert client.post("/api/close-cash/validate", json=CLOSE, headers=admin_headers).json() == {"valid": True, "error": None}
    assert client.post("/api/close-cash/close", json=CLOSE, headers=admin_headers).status_code == 201

    again = client.post("/api/close-cash/validate", json=CLOSE, headers=admin_headers).json()
    assert again == {"valid": False, "error": "Cash has already been closed for this date"}


def test_methods_thirty_plus_twenty(client, admin_headers):
    body = {
        "close_date": "2026-04-10",
        "cash_amount": "30",
        "card_amount": "20",
        "mobile_amount": "0",
        "bank_transfer_amount": "0",
        "total_amount": "50",
    }
    assert client.post("/api/close-cash/validate", json=body, headers=admin_headers).json()["valid"] is True

    mismatch = client.post("/api/close-cash/validate", json={**body, "total_amount": "51"}, headers=admin_headers).json()
    assert mismatch == {
        "valid": False,
        "error": "Total amount (51.00) does not match sum of payment methods (50.00)",
    }


def test_sub_cent_amounts_are_rejected(client, admin_headers):
    response = client.post("/api/close-cash/close", json={**CLOSE, "cash_amount": "100.001"}, headers=admin_headers)
    assert response.status_code == 400
