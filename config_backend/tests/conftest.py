"""
Pytest fixtures for config_backend: an app wired to fake stores and a logged-in demo user.
"""
import pytest
from fastapi.testclient import TestClient

from config_backend.main import create_app
from config_backend.tests.fakes import (
    CONNECTION_STRING,
    DEFAULT_VALUES,
    DEMO_PASSWORD,
    DEMO_USERNAME,
    SECRET_NAME,
    FakeSecretStore,
    FakeSettingsStoreFactory,
    make_settings,
)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def secret_store():
    return FakeSecretStore({SECRET_NAME: CONNECTION_STRING})


@pytest.fixture
def store_factory():
    return FakeSettingsStoreFactory(DEFAULT_VALUES)


@pytest.fixture
def app(settings, secret_store, store_factory):
    return create_app(settings, secret_store=secret_store, settings_store_factory=store_factory)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def token(client):
    r = client.post("/api/auth/login", json={"username": DEMO_USERNAME, "password": DEMO_PASSWORD})
    assert r.status_code == 200
    return r.json()["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}
