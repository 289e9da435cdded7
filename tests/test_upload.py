"""Tests for the authenticated file upload endpoint."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from blog_api.core.errors import ValidationAppError
from blog_api.services.upload_service import UploadService

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n"


def _upload(client: TestClient, headers: dict | None, content: bytes, filename: str = "photo.png"):
    return client.post(
        "/api/posts/upload",
        files={"image": (filename, content, "image/png")},
        headers=headers,
    )


class TestUploadEndpoint:
    def test_stores_file_and_serves_it(self, client: TestClient, auth_headers: dict) -> None:
        response = _upload(client, auth_headers, PNG_BYTES)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "File uploaded successfully"
        assert body["filename"].endswith(".png")
        assert body["path"] == f"uploads/{body['filename']}"

        served = client.get(f"/{body['path']}")
        assert served.status_code == 200
        assert served.content == PNG_BYTES

    def test_pdf_is_accepted(self, client: TestClient, auth_headers: dict) -> None:
        response = _upload(client, auth_headers, PDF_BYTES, filename="doc.pdf")

        assert response.status_code == 200
        assert response.json()["filename"].endswith(".pdf")

    def test_client_filename_is_not_used(self, client: TestClient, auth_headers: dict) -> None:
        response = _upload(client, auth_headers, PNG_BYTES, filename="../../etc/passwd.png")

        assert response.status_code == 200
        assert "passwd" not in response.json()["filename"]

    def test_requires_token(self, client: TestClient) -> None:
        response = _upload(client, None, PNG_BYTES)

        assert response.status_code == 401

    def test_missing_file_returns_400(self, client: TestClient, auth_headers: dict) -> None:
        response = client.post("/api/posts/upload", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded"

    def test_spoofed_extension_is_rejected(self, client: TestClient, auth_headers: dict) -> None:
        response = _upload(client, auth_headers, b"#!/bin/sh\nrm -rf /\n", filename="evil.png")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "unsupported_file_type"

    def test_oversized_file_returns_413(self, make_app) -> None:
        app = make_app(max_upload_size_mb=1)
        with TestClient(app) as client:
            register = client.post(
                "/api/auth/register",
                json={"username": "uploader", "email": "up@example.com", "password": "secret123"},
            )
            headers = {"Authorization": f"Bearer {register.json()['token']}"}

            response = _upload(client, headers, PNG_BYTES + b"\x00" * (1024 * 1024))

        assert response.status_code == 413
        assert response.json()["message"] == "File too large. Maximum size: 1MB"


class TestUploadService:
    def test_writes_under_upload_dir(self, tmp_path: Path) -> None:
        service = UploadService(tmp_path, allowed_types={"png"})

        stored = service.store(PNG_BYTES, original_filename="a.png")

        assert (tmp_path / stored.filename).read_bytes() == PNG_BYTES
        assert stored.file_type == "png"
        assert stored.size == len(PNG_BYTES)

    def test_empty_file_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            UploadService(tmp_path).store(b"")

        assert exc_info.value.code == "empty_file"

    def test_disallowed_type_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            UploadService(tmp_path, allowed_types={"png"}).store(PDF_BYTES)

        assert exc_info.value.details == {"allowed_types": ["png"]}
        assert list(tmp_path.iterdir()) == []
