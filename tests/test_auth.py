"""Tests for registration, login and bearer token authentication."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from blog_api.core.auth import resolve_user
from blog_api.core.config import settings
from blog_api.core.errors import AuthenticationAppError
from blog_api.core.security import create_access_token


class TestRegister:
    def test_returns_token_and_public_user(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "Alice@Example.com", "password": "secret123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["token"]
        assert data["user"]["username"] == "alice"
        assert data["user"]["email"] == "alice@example.com"
        assert "password" not in data["user"]
        assert "hashedPassword" not in data["user"]

    def test_duplicate_email_returns_409(self, client: TestClient, register_user) -> None:
        register_user(username="alice", email="alice@example.com")

        response = client.post(
            "/api/auth/register",
            json={"username": "alice2", "email": "alice@example.com", "password": "secret123"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "email_taken"

    def test_duplicate_username_returns_409(self, client: TestClient, register_user) -> None:
        register_user(username="alice")

        response = client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "other@example.com", "password": "secret123"},
        )

        assert response.status_code == 409
        assert response.json()["error"]["details"]["field"] == "username"

    @pytest.mark.parametrize(
        ("payload", "field"),
        [
            ({"username": "al", "email": "a@example.com", "password": "secret123"}, "username"),
            ({"username": "bad name", "email": "a@example.com", "password": "secret123"}, "username"),
            ({"username": "alice", "email": "not-an-email", "password": "secret123"}, "email"),
            ({"username": "alice", "email": "a@example.com", "password": "12345"}, "password"),
        ],
    )
    def test_invalid_input_returns_400(self, client: TestClient, payload: dict, field: str) -> None:
        response = client.post("/api/auth/register", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert field in [e["field"] for e in body["error"]["details"]["errors"]]

    def test_welcome_email_queued_when_mail_configured(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(settings.mail, "host", "smtp.example.com")
        monkeypatch.setattr(settings.mail, "from_address", "blog@example.com")

        with patch("blog_api.api.routes.auth.send_welcome_email") as send:
            response = client.post(
                "/api/auth/register",
                json={"username": "mailme", "email": "mailme@example.com", "password": "secret123"},
            )

        assert response.status_code == 201
        send.assert_called_once_with("mailme", "mailme@example.com")

    def test_no_email_when_mail_not_configured(self, client: TestClient) -> None:
        with patch("blog_api.api.routes.auth.send_welcome_email") as send:
            client.post(
                "/api/auth/register",
                json={"username": "quiet", "email": "quiet@example.com", "password": "secret123"},
            )

        send.assert_not_called()


class TestLogin:
    def test_valid_credentials_return_token(self, client: TestClient, register_user) -> None:
        register_user(username="alice", password="secret123")

        response = client.post(
            "/api/auth/login",
            json={"email": "ALICE@example.com", "password": "secret123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["user"]["username"] == "alice"

    def test_wrong_password_returns_401(self, client: TestClient, register_user) -> None:
        register_user(username="alice", password="secret123")

        response = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_unknown_email_gives_same_message(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/login",
            json={"email": "ghost@example.com", "password": "secret123"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


class TestCurrentUser:
    def test_me_returns_token_owner(self, client: TestClient, auth_headers: dict) -> None:
        response = client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["username"] == "alice"

    def test_missing_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    def test_token_for_deleted_user_returns_401(self, client: TestClient) -> None:
        token = create_access_token(9999)

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_resolve_user_raises_for_unknown_user(self, app) -> None:
        with app.state.session_factory() as session:
            with pytest.raises(AuthenticationAppError) as exc_info:
                resolve_user(session, create_access_token(12345))

        assert exc_info.value.code == "user_not_found"
