"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from blog_api.core.config import LogSettings
from blog_api.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    configure_logging,
    set_request_id,
)


@pytest.fixture
def capture():
    """Return (logger, stream) wired with the redaction filter and JSON formatter."""

    def _build(name: str):
        logger = logging.getLogger(name)
        logger.setLevel(logging.INFO)
        logger.handlers.clear()
        logger.propagate = False

        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.addFilter(RequestIdFilter())
        handler.addFilter(SensitiveDataFilter())
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        return logger, stream

    return _build


def test_sensitive_filter_redacts_credentials(capture):
    """Ensure tokens and passwords are redacted."""
    logger, stream = capture("test_redaction")

    logger.info(
        "test_event",
        extra={
            "password": "hunter22",
            "authorization": "Bearer abc.def.ghi",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "hunter22" not in output
    assert "abc.def.ghi" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_post_content(capture):
    """Post bodies may hold personal data and are never logged."""
    logger, stream = capture("test_content_redaction")

    logger.info(
        "post_event",
        extra={"content": "Dear diary, my address is 1 Main St", "post_id": 3},
    )

    output = stream.getvalue()

    assert "Main St" not in output
    assert "post_id" in output


def test_sensitive_filter_allows_safe_fields(capture):
    """Verify safe fields pass through unmodified."""
    logger, stream = capture("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "request_id": "req-123",
            "path": "/api/posts",
            "status_code": 200,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "req-123" in output
    assert "/api/posts" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts(capture):
    """Ensure nested sensitive fields are redacted."""
    logger, stream = capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "Authorization": "Bearer secret-token",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()

    assert "secret-token" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_request_id_from_context_is_attached(capture):
    logger, stream = capture("test_request_id")

    set_request_id("ctx-42")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "ctx-42"


def test_configure_logging_writes_errors_to_separate_file(tmp_path):
    combined = tmp_path / "logs" / "combined.log"
    errors = tmp_path / "logs" / "error.log"
    root = logging.getLogger()
    previous_handlers = root.handlers[:]
    previous_level = root.level

    try:
        configure_logging(
            LogSettings(
                level="INFO",
                output="file",
                file_path=str(combined),
                error_file_path=str(errors),
            )
        )
        logger = logging.getLogger("test_file_output")
        logger.info("just_info")
        logger.error("something_broke")
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)

    assert "just_info" in combined.read_text()
    assert "something_broke" in combined.read_text()
    error_lines = errors.read_text()
    assert "something_broke" in error_lines
    assert "just_info" not in error_lines


def test_redaction_covers_every_credential_key(capture):
    logger, stream = capture("test_credential_keys")

    logger.warning(
        "mail_event",
        extra={
            "smtp_password": "mail-pass",
            "hashed_password": "$pbkdf2-sha256$abc",
            "Access_Token": "eyJ.payload.sig",
            "jwt_secret": "signing-key",
            "to": "reader@example.com",
        },
    )

    data = json.loads(stream.getvalue())
    assert data["smtp_password"] == "[REDACTED]"
    assert data["hashed_password"] == "[REDACTED]"
    assert data["Access_Token"] == "[REDACTED]"
    assert data["jwt_secret"] == "[REDACTED]"
    assert data["to"] == "reader@example.com"


def test_error_only_file_gets_traceback_without_credentials(tmp_path):
    errors = tmp_path / "error.log"
    root = logging.getLogger()
    previous_handlers = root.handlers[:]
    previous_level = root.level

    try:
        configure_logging(
            LogSettings(level="INFO", output="stdout", error_file_path=str(errors), max_bytes=0)
        )
        logger = logging.getLogger("test_error_file")
        logger.warning("slow_request", extra={"duration_ms": 900})
        try:
            raise RuntimeError("smtp down")
        except RuntimeError:
            logger.exception("mail.send_failed", extra={"password": "hunter22"})
        for handler in root.handlers:
            handler.flush()
    finally:
        for handler in root.handlers:
            if handler not in previous_handlers:
                handler.close()
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)

    lines = errors.read_text().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["message"] == "mail.send_failed"
    assert record["level"] == "error"
    assert "smtp down" in record["exc_info"]
    assert record["password"] == "[REDACTED]"
