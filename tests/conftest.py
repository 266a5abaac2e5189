"""Shared fixtures: an in-memory Mongo database and a Flask test client."""

import mongomock
import pytest

from toolhub.app import create_app
from toolhub.services.admin_accounts import create_admin

ADMIN_PASSWORD = "admin-pass-123"
USER_PASSWORD = "user-pass-123"


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("ADMIN_JWT_SECRET", "test-admin-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("BASE_URL", "http://short.test")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


@pytest.fixture
def db():
    return mongomock.MongoClient()["toolhub_test"]


@pytest.fixture
def app(db):
    app = create_app(database=db)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def register_user(client, email="ada@example.com", name="Ada Lovelace", password=USER_PASSWORD, **extra):
    payload = {"email": email, "name": name, "password": password, **extra}
    return client.post("/api/auth/register", json=payload)


@pytest.fixture
def user_client(client):
    """A client carrying a signed-in end user's session cookie."""
    response = register_user(client)
    assert response.status_code == 201
    return client


@pytest.fixture
def make_admin(db):
    def _make(email="root@example.com", role="super_admin", password=ADMIN_PASSWORD):
        return create_admin(db["adminusers"], email, password, role=role, first_name="Root", rounds=4)

    return _make


@pytest.fixture
def admin_client(app, make_admin):
    make_admin()
    client = app.test_client()
    response = client.post("/api/admin/auth/login", json={"email": "root@example.com", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
