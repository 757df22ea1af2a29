LEDGER_ROW = {"NAME": "Ahmed Nur", "descr": "2 suits", "quan": 2, "unitprice": "6.00", "totalAmount": "12.00", "mobnum": 615550111}


def test_create_uses_ledger_keys_and_fills_amount_words(client, admin_headers):
    response = client.post("/api/register-legacy/", json=LEDGER_ROW, headers=admin_headers)
    assert response.status_code == 201
    record = response.json()["record"]
    assert record["NAME"] == "Ahmed Nur"
    assert record["payCheck"] == "pending"
    assert record["amntword"] == "Twelve"
    assert "itemNum" in record


def test_payment_update(client, admin_headers):
    item_num = client.post("/api/register-legacy/", json=LEDGER_ROW, headers=admin_headers).json()["record"]["itemNum"]
    response = client.put(
        f"/api/register-legacy/{item_num}/payment",
        json={"payCheck": "paid", "totalAmount": "15.50"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    record = response.json()["record"]
    assert record["payCheck"] == "paid"
    assert record["amntword"] == "Fifteen and Fifty Cents"


def test_invalid_pay_check_is_rejected(client, admin_headers):
    item_num = client.post("/api/register-legacy/", json=LEDGER_ROW, headers=admin_headers).json()["record"]["itemNum"]
    response = client.put(f"/api/register-legacy/{item_num}/payment", json={"payCheck": "maybe"}, headers=admin_headers)
    assert response.status_code == 400


def test_search_and_delete(client, admin_headers):
    item_num = client.post("/api/register-legacy/", json=LEDGER_ROW, headers=admin_headers).json()["record"]["itemNum"]
    found = client.get("/api/register-legacy/search/5550111", headers=admin_headers).json()
    assert found["total_found"] == 1

    deleted = client.delete(f"/api/register-legacy/{item_num}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/register-legacy/{item_num}", headers=admin_headers).status_code == 404

    history = client.get(f"/api/audit/record/register_legacy/{item_num}", headers=admin_headers).json()["history"]
    assert [h["action_type"] for h in history].count("DELETE") == 1


def test_stats_by_pay_check(client, admin_headers):
    client.post("/api/register-legacy/", json=LEDGER_ROW, headers=admin_headers)
    client.post("/api/register-legacy/", json={**LEDGER_ROW, "payCheck": "paid"}, headers=admin_headers)
    stats = client.get("/api/register-legacy/stats/summary", headers=admin_headers).json()
    assert stats["total_records"] == 2
    assert stats["paid_records"] == 1
    assert float(stats["total_amount"]) == 24


def test_search_without_digits_finds_nothing(client, admin_headers):
    client.post("/api/register-legacy/", json=LEDGER_ROW, headers=admin_headers)
    assert client.get("/api/register-legacy/search/xyz", headers=admin_headers).status_code == 404
    assert client.get("/api/register-legacy/search/___", headers=admin_headers).status_code == 404
    assert client.get("/api/register-legacy/search/5-55-0111", headers=admin_headers).json()["total_found"] == 1
