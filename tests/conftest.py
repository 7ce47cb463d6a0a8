"""
Shared fixtures for the TaskDesk test suite.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from taskdesk.application.services.account_service import AccountService
from taskdesk.application.services.password_hasher import PasswordHasher
from taskdesk.application.services.token_service import TokenService
from taskdesk.application.services.user_admin_service import UserAdminService
from taskdesk.core.app_factory import create_application
from taskdesk.core.config import Settings
from taskdesk.infrastructure.persistence.sqlite import SQLitePersistence

TEST_SECRET = "test-secret-key"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "AdminPass123"
DEFAULT_PASSWORD = "Password123"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now=None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "taskdesk.db"))
    monkeypatch.setenv("JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    for key in ("SMTP_HOST", "JWT_EXPIRES_IN", "MAX_LOGIN_ATTEMPTS", "LOCKOUT_MINUTES", "CORS_ALLOW_ORIGINS"):
        monkeypatch.delenv(key, raising=False)
    return Settings()


@pytest.fixture
def client(settings, clock):
    app = create_application(settings, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def persistence(tmp_path):
    store = SQLitePersistence(tmp_path / "unit.db")
    yield store
    store.close()


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service(persistence, clock):
    return TokenService(users=persistence, secret_key=TEST_SECRET, clock=clock)


@pytest.fixture
def account_service(persistence, hasher, token_service, clock):
    return AccountService(users=persistence, hasher=hasher, tokens=token_service, clock=clock)


@pytest.fixture
def admin_service(persistence, hasher, clock):
    return UserAdminService(users=persistence, hasher=hasher, clock=clock)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, email: str, password: str = DEFAULT_PASSWORD, **extra) -> dict:
    payload = {"email": email, "password": password, "firstName": "Test", "lastName": "User"}
    payload.update(extra)
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def login(client, email: str, password: str = DEFAULT_PASSWORD):
    return client.post("/api/auth/login", json={"email": email, "password": password})


@pytest.fixture
def admin_token(client):
    response = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]
