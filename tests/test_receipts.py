def test_receipt_data(client, admin_headers, make_order):
    order = make_order()
    client.post("/api/payments/", json={"order_id": order["order_id"], "amount": "2.50", "payment_method": "card"}, headers=admin_headers)

    receipt = client.get(f"/api/receipts/order/{order['order_id']}", headers=admin_headers).json()
    assert receipt["businessName"] == "Clean Co Laundry"
    assert receipt["orderNumber"] == "ORD-001"
    assert receipt["customerName"] == "Amina Yusuf"
    assert receipt["totalInWords"] == "Seven and Fifty Cents"
    assert float(receipt["remainingAmount"]) == 5
    assert len(receipt["payments"]) == 1


def test_receipt_pdf(client, admin_headers, make_order):
    order = make_order()
    response = client.get(f"/api/receipts/order/{order['order_id']}/pdf", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_receipt_for_missing_order(client, admin_headers):
    assert client.get("/api/receipts/order/42", headers=admin_headers).status_code == 404
