from models.customers import Customer as CustomerModel


def test_routes_require_a_token(client):
    response = client.get("/api/customers/")
    assert response.status_code == 401
    assert response.json() == {"error": "Access token required"}


def test_invalid_token_is_rejected(client):
    response = client.get("/api/customers/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token"


def test_create_customer_writes_audit_row(client, admin_headers):
    response = client.post(
        "/api/customers/",
        json={"customer_name": "Hodan  Ali", "phone_number": "061-555-0199", "email": "hodan@example.com"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Customer created successfully"
    assert body["customer"]["customer_name"] == "Hodan Ali"
    assert body["customer"]["created_by"] == "admin"

    audit = client.get("/api/audit/", params={"table_name": "customers"}, headers=admin_headers).json()
    assert audit["total"] == 1
    entry = audit["audit_logs"][0]
    assert entry["action_type"] == "CREATE"
    assert entry["emp_id"] == "admin"
    assert entry["record_id"] == str(body["customer_id"])
    assert entry["new_values"]["customer_name"] == "Hodan Ali"


def test_customer_name_must_have_two_words(client, admin_headers):
    response = client.post(
        "/api/customers/",
        json={"customer_name": "Hodan", "phone_number": "0615550199"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Please enter a full name (first and last name)"
    assert body["details"][0]["field"] == "customer_name"


def test_phone_number_format_is_checked(client, admin_headers):
    response = client.post(
        "/api/customers/",
        json={"customer_name": "Hodan Ali", "phone_number": "call me"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid phone number format"


def test_duplicate_phone_number_conflicts(client, admin_headers, customer):
    response = client.post(
        "/api/customers/",
        json={"customer_name": "Other Person", "phone_number": customer["phone_number"]},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Phone number already exists"
    assert len(client.get("/api/customers/", headers=admin_headers).json()) == 1


def test_deleted_customer_frees_phone_number(client, admin_headers, customer):
    response = client.delete(f"/api/customers/{customer['customer_id']}", headers=admin_headers)
    assert response.status_code == 200

    assert client.get(f"/api/customers/{customer['customer_id']}", headers=admin_headers).status_code == 404
    assert client.get("/api/customers/", headers=admin_headers).json() == []

    again = client.post(
        "/api/customers/",
        json={"customer_name": "New Owner", "phone_number": customer["phone_number"]},
        headers=admin_headers,
    )
    assert again.status_code == 201


def test_only_admins_delete_customers(client, staff_headers, customer):
    response = client.delete(f"/api/customers/{customer['customer_id']}", headers=staff_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "Insufficient permissions"


def test_customer_with_orders_cannot_be_deleted(client, admin_headers, customer, make_order):
    make_order()
    response = client.delete(f"/api/customers/{customer['customer_id']}", headers=admin_headers)
    assert response.status_code == 409


def test_update_records_old_and_new_values(client, admin_headers, customer):
    response = client.put(
        f"/api/customers/{customer['customer_id']}",
        json={"address": "Maka Al Mukarama Rd"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["customer"]["address"] == "Maka Al Mukarama Rd"

    history = client.get(f"/api/audit/record/customers/{customer['customer_id']}", headers=admin_headers).json()["history"]
    update = [h for h in history if h["action_type"] == "UPDATE"][0]
    assert update["old_values"]["address"] is None
    assert update["new_values"]["address"] == "Maka Al Mukarama Rd"


def test_empty_update_is_rejected(client, admin_headers, customer):
    response = client.put(f"/api/customers/{customer['customer_id']}", json={}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "No valid fields to update"


def test_null_for_required_field_is_a_validation_error(client, admin_headers, customer):
    response = client.put(f"/api/customers/{customer['customer_id']}", json={"customer_name": None}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "customer_name cannot be null"


def test_customer_stats_and_search(client, admin_headers, customer, make_order):
    make_order()
    make_order(items=[{"item_name": "Blanket", "quantity": 1, "unit_price": "10.00"}])

    detail = client.get(f"/api/customers/{customer['customer_id']}", headers=admin_headers).json()
    assert detail["total_orders"] == 2
    assert float(detail["total_spent"]) == 17.5

    found = client.get("/api/customers/search/Amina", headers=admin_headers).json()
    assert [c["customer_id"] for c in found] == [customer["customer_id"]]


def test_soft_deleted_row_is_kept(client, admin_headers, customer, db):
    client.delete(f"/api/customers/{customer['customer_id']}", headers=admin_headers)
    db.expire_all()
    row = (
        db.query(CustomerModel)
        .filter(CustomerModel.customer_id == customer["customer_id"])
        .execution_options(include_deleted=True)
        .one()
    )
    assert row.deleted_at is not None
    assert row.deleted_by == "admin"
    assert db.query(CustomerModel).count() == 0
