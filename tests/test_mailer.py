"""Tests for SMTP email delivery."""

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock, patch

from blog_api.core.config import MailSettings
from blog_api.services.mailer import build_message, send_email


def _mail_settings(**overrides) -> MailSettings:
    values = {
        "host": "smtp.example.com",
        "port": 587,
        "user": "mailer",
        "password": "smtp-pass",
        "from_address": "blog@example.com",
    }
    values.update(overrides)
    return MailSettings(**values)


def test_build_message_has_text_and_html_parts():
    message = build_message(_mail_settings(), "to@example.com", "Hi", "plain body", "<p>html</p>")

    assert message["To"] == "to@example.com"
    assert message["From"] == "blog@example.com"
    assert message.is_multipart()


def test_disabled_without_host():
    with patch("blog_api.services.mailer.smtplib.SMTP") as smtp:
        sent = send_email("to@example.com", "Hi", "body", mail_settings=_mail_settings(host=None))

    assert sent is False
    smtp.assert_not_called()


def test_sends_with_starttls_and_login():
    client = MagicMock()
    with patch("blog_api.services.mailer.smtplib.SMTP") as smtp:
        smtp.return_value.__enter__.return_value = client
        sent = send_email("to@example.com", "Hi", "body", mail_settings=_mail_settings())

    assert sent is True
    smtp.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
    client.starttls.assert_called_once()
    client.login.assert_called_once_with("mailer", "smtp-pass")
    client.send_message.assert_called_once()


def test_smtp_failure_returns_false():
    with patch("blog_api.services.mailer.smtplib.SMTP") as smtp:
        smtp.side_effect = smtplib.SMTPConnectError(421, b"unavailable")
        sent = send_email("to@example.com", "Hi", "body", mail_settings=_mail_settings())

    assert sent is False
