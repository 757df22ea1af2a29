from models.users import User, UserPosition
from utils.auth_utils import is_password_hash


def test_first_registered_user_becomes_admin(client):
    response = client.post("/api/auth/register", json={"username": "owner", "password": "secret123", "position": "staff"})
    assert response.status_code == 201
    assert response.json()["position"] == "admin"


def test_later_registrations_need_an_admin(client, admin_headers, staff_headers):
    body = {"username": "newclerk", "password": "secret123"}
    assert client.post("/api/auth/register", json=body).status_code == 401
    assert client.post("/api/auth/register", json=body, headers=staff_headers).status_code == 403

    created = client.post("/api/auth/register", json=body, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["position"] == "staff"

    duplicate = client.post("/api/auth/register", json=body, headers=admin_headers)
    assert duplicate.status_code == 409


def test_login_returns_token_and_is_audited(client, make_user):
    make_user("halima", UserPosition.MANAGER, password="pass1234")
    response = client.post("/api/auth/login", json={"username": "halima", "password": "pass1234"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["expiresIn"] == "24h"
    assert body["user"]["position"] == "manager"

    headers = {"Authorization": f"Bearer {body['token']}"}
    logs = client.get("/api/audit/", params={"action_type": "LOGIN"}, headers=headers).json()
    assert logs["total"] == 1
    assert logs["audit_logs"][0]["status"] == "User Login"
    assert logs["audit_logs"][0]["emp_id"] == "halima"


def test_wrong_password(client, make_user):
    make_user("halima", password="pass1234")
    response = client.post("/api/auth/login", json={"username": "halima", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_plain_text_password_is_upgraded_on_login(client, make_user, db):
    user = make_user("legacy", password="oldpass", hashed=False)
    assert client.post("/api/auth/login", json={"username": "legacy", "password": "oldpass"}).status_code == 200

    db.expire_all()
    stored = db.query(User).filter(User.id == user.id).one().hashed_password
    assert is_password_hash(stored)
    assert client.post("/api/auth/login", json={"username": "legacy", "password": "oldpass"}).status_code == 200


def test_inactive_user_cannot_log_in(client, make_user):
    make_user("gone", password="pass1234", is_active=False)
    assert client.post("/api/auth/login", json={"username": "gone", "password": "pass1234"}).status_code == 403


def test_profile_refresh_and_logout(client, admin_headers):
    assert client.get("/api/auth/profile", headers=admin_headers).json()["username"] == "admin"

    refreshed = client.post("/api/auth/refresh", headers=admin_headers).json()
    assert refreshed["token"]

    response = client.post("/api/auth/logout", headers=admin_headers)
    assert response.json() == {"success": True, "message": "Logged out successfully"}
    logs = client.get("/api/audit/", params={"action_type": "LOGOUT"}, headers=admin_headers).json()
    assert logs["total"] == 1


def test_change_password(client, admin_headers):
    wrong = client.post(
        "/api/auth/change-password",
        json={"current_password": "bad", "new_password": "newsecret"},
        headers=admin_headers,
    )
    assert wrong.status_code == 400
    assert wrong.json()["error"] == "Current password is incorrect"

    ok = client.post(
        "/api/auth/change-password",
        json={"current_password": "secret123", "new_password": "newsecret"},
        headers=admin_headers,
    )
    assert ok.status_code == 200
    assert client.post("/api/auth/login", json={"username": "admin", "password": "newsecret"}).status_code == 200


def test_deactivate_user(client, admin_headers, make_user):
    clerk = make_user("temp")
    assert client.delete(f"/api/auth/users/{clerk.id}", headers=admin_headers).status_code == 200

    usernames = [u["username"] for u in client.get("/api/auth/users", headers=admin_headers).json()]
    assert "temp" not in usernames
    assert client.post("/api/auth/login", json={"username": "temp", "password": "secret123"}).status_code == 401


def test_health_is_public(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"
