"""
Pytest configuration and shared fixtures.

No database is needed: repository functions are monkeypatched per test and
the auth dependency is overridden on the FastAPI app.
"""

import os

# Must be set before the limiter module is imported.
os.environ.setdefault("APP_ENV", "test")

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from hauptgang.auth import dependencies as auth_dependencies
from hauptgang.auth import service as auth_service
from hauptgang.core.limiter import limiter
from hauptgang.main import app

NOW = datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _disable_rate_limit():
    limiter.enabled = False
    yield


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in (
        "REVENUECAT_WEBHOOK_SECRET",
        "REVENUECAT_ENTITLEMENT_ID",
        "APIFY_API_KEY",
        "OPENROUTER_BASE_URL",
        "RECIPE_TEXT_MODEL",
        "RECIPE_IMAGE_MODEL",
        "MAX_IMAGE_UPLOAD_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OPENROUTER_API_KEY", "test-dummy-key")


@pytest.fixture
def user():
    return {
        "id": 1,
        "email": "cook@example.com",
        "password_hash": "",
        "pro": False,
        "created_at": NOW,
        "updated_at": NOW,
    }


@pytest.fixture
def api_token():
    return {
        "id": 10,
        "user_id": 1,
        "token_digest": "digest",
        "name": "iPhone",
        "expires_at": NOW,
        "revoked_at": None,
        "last_used_at": NOW,
        "created_at": NOW,
    }


@pytest.fixture
def client(user, api_token):
    """
    Client authenticated as `user`.
    """
    app.dependency_overrides[auth_dependencies.get_auth_context] = lambda: auth_service.AuthContext(
        user=user,
        token=api_token,
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def anon_client():
    return TestClient(app)
