"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any ``blog_api`` import so the global
settings object points at an in-memory database and test-only secrets.
"""

import os
import tempfile

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["DB_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret-0123456789abcdef0123"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_UPLOAD_DIR", tempfile.mkdtemp(prefix="blog-api-uploads-"))
# Generous defaults so ordinary tests never trip the limiter
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "1000")
os.environ.setdefault("APP_RATE_LIMIT_API_REQUESTS", "1000")
os.environ.pop("SMTP_HOST", None)

from typing import Any, Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from blog_api.core.app_factory import create_app
from blog_api.core.config import settings


@pytest.fixture
def make_app(tmp_path, monkeypatch) -> Callable[..., FastAPI]:
    """Build a fresh app, optionally overriding ``settings.app`` fields first.

    Every app owns its own in-memory database and rate limiters.
    """

    def _make(**app_overrides: Any) -> FastAPI:
        monkeypatch.setattr(settings.app, "upload_dir", str(tmp_path / "uploads"))
        for name, value in app_overrides.items():
            monkeypatch.setattr(settings.app, name, value)
        return create_app()

    return _make


@pytest.fixture
def app(make_app) -> FastAPI:
    return make_app()


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client: TestClient) -> Callable[..., dict]:
    """Register a user through the API and return the response body."""

    def _register(
        username: str = "alice",
        email: str | None = None,
        password: str = "secret123",
    ) -> dict:
        response = client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register_user) -> dict[str, str]:
    data = register_user()
    return {"Authorization": f"Bearer {data['token']}"}


@pytest.fixture
def other_auth_headers(register_user) -> dict[str, str]:
    data = register_user(username="bob")
    return {"Authorization": f"Bearer {data['token']}"}
