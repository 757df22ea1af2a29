def _pay(client, headers, order_id, amount, method="cash"):
    return client.post("/api/payments/", json={"order_id": order_id, "amount": amount, "payment_method": method}, headers=headers)


def test_partial_then_full_payment(client, admin_headers, make_order):
    order = make_order()

    first = _pay(client, admin_headers, order["order_id"], "5.00")
    assert first.status_code == 201
    assert first.json()["order_payment_status"] == "partial"
    assert float(first.json()["outstanding_amount"]) == 2.5
    assert first.json()["payment"]["receipt_number"].startswith("RCP-")

    second = _pay(client, admin_headers, order["order_id"], "2.50", method="mobile")
    assert second.json()["order_payment_status"] == "paid"


def test_overpayment_is_rejected(client, admin_headers, make_order):
    order = make_order()
    response = _pay(client, admin_headers, order["order_id"], "100")
    assert response.status_code == 400
    assert response.json()["error"] == "Payment amount exceeds outstanding balance of $7.50"


def test_validate_reports_problems_without_saving(client, admin_headers, make_order):
    order = make_order()
    response = client.post(
        "/api/payments/validate",
        json={"order_id": order["order_id"], "amount": "1", "payment_method": "cheque"},
        headers=admin_headers,
    )
    assert response.json() == {"valid": False, "error": "Invalid or inactive payment method"}

    zero = client.post(
        "/api/payments/validate",
        json={"order_id": order["order_id"], "amount": "0", "payment_method": "cash"},
        headers=admin_headers,
    )
    assert zero.json()["error"] == "Payment amount must be greater than 0"
    assert client.get("/api/payments/", headers=admin_headers).json()["pagination"]["total"] == 0


def test_payment_for_missing_order(client, admin_headers):
    response = _pay(client, admin_headers, 404, "1")
    assert response.status_code == 404
    assert response.json()["error"] == "Order not found"


def test_refund_reduces_paid_amount(client, admin_headers, make_order):
    order = make_order()
    payment = _pay(client, admin_headers, order["order_id"], "7.50").json()["payment"]

    response = client.post(
        f"/api/payments/{payment['payment_id']}/refund",
        json={"refund_amount": "7.50", "refund_reason": "Stain not removed"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["payment"]["status"] == "refunded"

    summary = client.get(f"/api/payments/order/{order['order_id']}", headers=admin_headers).json()
    assert float(summary["paid_amount"]) == 0
    assert summary["payment_status"] == "unpaid"


def test_staff_cannot_refund(client, admin_headers, staff_headers, make_order):
    order = make_order()
    payment = _pay(client, admin_headers, order["order_id"], "1").json()["payment"]
    response = client.post(
        f"/api/payments/{payment['payment_id']}/refund",
        json={"refund_amount": "1", "refund_reason": "test"},
        headers=staff_headers,
    )
    assert response.status_code == 403


def test_outstanding_orders(client, admin_headers, make_order):
    order = make_order()
    _pay(client, admin_headers, order["order_id"], "2.50")
    body = client.get("/api/payments/outstanding", headers=admin_headers).json()
    assert len(body["orders"]) == 1
    assert float(body["total_outstanding"]) == 5


def test_payment_list_and_search(client, admin_headers, make_order):
    order = make_order()
    _pay(client, admin_headers, order["order_id"], "2.50")
    listing = client.get("/api/payments/", params={"search": "Amina"}, headers=admin_headers).json()
    assert listing["pagination"]["total"] == 1
    assert listing["payments"][0]["order_number"] == order["order_number"]
