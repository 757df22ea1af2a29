def test_order_numbers_are_sequential(make_order):
    first = make_order()
    second = make_order()
    assert first["order_number"] == "ORD-001"
    assert second["order_number"] == "ORD-002"


def test_order_total_is_sum_of_items(make_order):
    order = make_order(items=[
        {"item_name": "Shirt", "quantity": 3, "unit_price": "2.50"},
        {"item_name": "Suit", "quantity": 1, "unit_price": "12.25"},
    ])
    assert float(order["total_amount"]) == 19.75


def test_order_requires_items(client, admin_headers, customer):
    response = client.post("/api/orders/", json={"customer_id": customer["customer_id"], "items": []}, headers=admin_headers)
    assert response.status_code == 400


def test_order_for_unknown_customer(client, admin_headers):
    response = client.post(
        "/api/orders/",
        json={"customer_id": 999, "items": [{"item_name": "Shirt", "quantity": 1, "unit_price": "1"}]},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Customer not found"


def test_read_order_includes_items_and_customer(client, admin_headers, make_order):
    order = make_order()
    body = client.get(f"/api/orders/{order['order_id']}", headers=admin_headers).json()
    assert body["order"]["customer_name"] == "Amina Yusuf"
    assert body["order"]["payment_status"] == "unpaid"
    assert len(body["items"]) == 1
    assert float(body["items"][0]["total_price"]) == 7.5
    assert body["payments"] == []


def test_order_list_summarises_items(client, admin_headers, make_order):
    make_order(items=[
        {"item_name": "Shirt", "quantity": 2, "unit_price": "2"},
        {"item_name": "Dress", "quantity": 1, "unit_price": "5"},
    ])
    orders = client.get("/api/orders/", headers=admin_headers).json()
    assert len(orders) == 1
    assert orders[0]["item_count"] == 2
    assert "Shirt" in orders[0]["items_summary"]


def test_status_change_is_audited(client, admin_headers, make_order):
    order = make_order()
    response = client.patch(f"/api/orders/{order['order_id']}/status", json={"status": "washing"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "washing"

    history = client.get(f"/api/audit/record/orders/{order['order_id']}", headers=admin_headers).json()["history"]
    change = [h for h in history if h["action_type"] == "UPDATE"][0]
    assert change["old_values"] == {"status": "pending"}
    assert change["new_values"] == {"status": "washing"}


def test_replacing_items_recomputes_total(client, admin_headers, make_order):
    order = make_order()
    response = client.put(
        f"/api/orders/{order['order_id']}",
        json={"items": [{"item_name": "Curtain", "quantity": 2, "unit_price": "8"}]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert float(response.json()["order"]["total_amount"]) == 16

    items = client.get(f"/api/orders/{order['order_id']}", headers=admin_headers).json()["items"]
    assert [i["item_name"] for i in items] == ["Curtain"]


def test_total_cannot_drop_below_paid(client, admin_headers, make_order):
    order = make_order()
    client.post("/api/payments/", json={"order_id": order["order_id"], "amount": "7.50", "payment_method": "cash"}, headers=admin_headers)
    response = client.put(
        f"/api/orders/{order['order_id']}",
        json={"items": [{"item_name": "Sock", "quantity": 1, "unit_price": "1"}]},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_deleted_order_is_hidden_and_number_not_reused(client, admin_headers, make_order):
    order = make_order()
    assert client.delete(f"/api/orders/{order['order_id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/orders/{order['order_id']}", headers=admin_headers).status_code == 404
    assert client.get("/api/orders/", headers=admin_headers).json() == []

    assert make_order()["order_number"] == "ORD-002"


def test_dashboard_stats(client, admin_headers, make_order):
    make_order()
    stats = client.get("/api/orders/stats/dashboard", headers=admin_headers).json()
    assert stats["totalOrders"] == 1
    assert stats["pendingOrders"] == 1
    assert float(stats["unpaidAmount"]) == 7.5


def test_null_order_date_is_a_validation_error(client, admin_headers, make_order):
    order = make_order()
    response = client.put(f"/api/orders/{order['order_id']}", json={"order_date": None}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "order_date cannot be null"


def test_sub_cent_prices_are_rejected(client, admin_headers, customer):
    response = client.post(
        "/api/orders/",
        json={
            "customer_id": customer["customer_id"],
            "items": [
                {"item_name": "Sock", "quantity": 1, "unit_price": "0.005"},
                {"item_name": "Sock", "quantity": 1, "unit_price": "0.005"},
            ],
        },
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "items.0.unit_price"


def test_stored_items_add_up_to_order_total(client, admin_headers, make_order):
    order = make_order(items=[
        {"item_name": "Shirt", "quantity": 3, "unit_price": "0.35"},
        {"item_name": "Tie", "quantity": 7, "unit_price": "1.01"},
    ])
    body = client.get(f"/api/orders/{order['order_id']}", headers=admin_headers).json()
    item_sum = sum(float(i["total_price"]) for i in body["items"])
    assert round(item_sum, 2) == float(body["order"]["total_amount"]) == 8.12


def test_status_change_stamps_updater(client, staff_headers, make_order):
    order = make_order()
    client.patch(f"/api/orders/{order['order_id']}/status", json={"status": "ready"}, headers=staff_headers)
    body = client.get(f"/api/orders/{order['order_id']}", headers=staff_headers).json()
    assert body["order"]["updated_by"] == "clerk"
    assert body["order"]["updated_at"] is not None
