ENTRY = {
    "name": "Farah Warsame",
    "phone": "061 555 0123",
    "laundry_items": [{"item": "Shirt", "qty": 4}],
    "total_amount": "20.00",
    "paid_amount": "5.00",
}


def _create(client, headers, **overrides):
    return client.post("/api/register/", json={**ENTRY, **overrides}, headers=headers)


def test_create_entry_issues_receipt(client, admin_headers):
    response = _create(client, admin_headers)
    assert response.status_code == 201
    record = response.json()["record"]
    assert record["receipt_number"].startswith("REG-")
    assert record["delivery_status"] == "pending"
    assert float(record["balance"]) == 15


def test_duplicate_phone_conflicts_until_deleted(client, admin_headers):
    first = _create(client, admin_headers).json()["record"]
    assert _create(client, admin_headers, name="Someone Else").status_code == 409

    assert client.delete(f"/api/register/{first['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/register/{first['id']}", headers=admin_headers).status_code == 404
    assert _create(client, admin_headers, name="Someone Else").status_code == 201


def test_search_ignores_separators(client, admin_headers):
    _create(client, admin_headers)
    body = client.get("/api/register/search/5550123", headers=admin_headers).json()
    assert body["total_found"] == 1

    assert client.get("/api/register/search/12", headers=admin_headers).status_code == 400
    assert client.get("/api/register/search/9999999", headers=admin_headers).status_code == 404


def test_search_without_digits_finds_nothing(client, admin_headers):
    _create(client, admin_headers)
    assert client.get("/api/register/search/abc", headers=admin_headers).status_code == 404
    assert client.get("/api/register/search/___", headers=admin_headers).status_code == 404
    assert client.get("/api/register/search/(-)", headers=admin_headers).status_code == 400


def test_delivered_sets_pickup_date(client, admin_headers):
    entry = _create(client, admin_headers).json()["record"]
    response = client.put(
        f"/api/register/{entry['id']}/status",
        json={"delivery_status": "delivered"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["record"]["pickup_date"] is not None


def test_pagination_and_status_filter(client, admin_headers):
    for i in range(3):
        _create(client, admin_headers, phone=f"061555010{i}")
    page = client.get("/api/register/", params={"page": 2, "limit": 2}, headers=admin_headers).json()
    assert len(page["records"]) == 1
    assert page["pagination"]["has_prev"] is True
    assert page["pagination"]["has_next"] is False

    ready = client.get("/api/register/", params={"status": "ready"}, headers=admin_headers).json()
    assert ready["pagination"]["total"] == 0


def test_stats_summary(client, admin_headers):
    _create(client, admin_headers)
    stats = client.get("/api/register/stats/summary", headers=admin_headers).json()
    assert stats["total_records"] == 1
    assert stats["pending_deliveries"] == 1
    assert float(stats["total_outstanding"]) == 15


def test_null_name_is_a_validation_error(client, admin_headers):
    entry = _create(client, admin_headers).json()["record"]
    response = client.put(f"/api/register/{entry['id']}", json={"name": None}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "name cannot be null"


def test_sub_cent_amount_is_rejected(client, admin_headers):
    assert _create(client, admin_headers, total_amount="20.005").status_code == 400
