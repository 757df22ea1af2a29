import os

# The module-level app in main is built from the environment on import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", "")
os.environ.setdefault("ENABLE_AUDIT_CLEANUP_JOB", "false")

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from models.users import User, UserPosition
from utils.auth_utils import create_access_token, hash_password, token_payload_for


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        jwt_secret="test-secret",
        log_dir=None,
        display_timezone="UTC",
        enable_audit_cleanup_job=False,
        auto_create_tables=True,
        business_name="Clean Co Laundry",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(client, app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(username, position=UserPosition.STAFF, password="secret123", is_active=True, hashed=True):
        user = User(
            username=username,
            fname=username.title(),
            hashed_password=hash_password(password) if hashed else password,
            position=position,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def token_for(settings):
    def _token_for(user):
        return create_access_token(settings, token_payload_for(user))
    return _token_for


@pytest.fixture
def admin_user(make_user):
    return make_user("admin", UserPosition.ADMIN)


@pytest.fixture
def admin_headers(admin_user, token_for):
    return {"Authorization": f"Bearer {token_for(admin_user)}"}


@pytest.fixture
def staff_headers(make_user, token_for):
    return {"Authorization": f"Bearer {token_for(make_user('clerk', UserPosition.STAFF))}"}


@pytest.fixture
def customer(client, admin_headers):
    response = client.post(
        "/api/customers/",
        json={"customer_name": "Amina Yusuf", "phone_number": "+252 61 555 0101"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()["customer"]


@pytest.fixture
def make_order(client, admin_headers, customer):
    def _make_order(items=None, **header):
        payload = {
            "customer_id": customer["customer_id"],
            "items": items or [{"item_name": "Shirt", "quantity": 3, "unit_price": "2.50"}],
            **header,
        }
        response = client.post("/api/orders/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make_order
