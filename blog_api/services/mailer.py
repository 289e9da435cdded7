"""Outgoing email over SMTP.

Delivery is best effort: it runs as a background task after the response is
sent, so failures are logged rather than raised.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from blog_api.core.config import MailSettings, settings

logger = logging.getLogger(__name__)


def build_message(
    mail_settings: MailSettings,
    to: str,
    subject: str,
    text: str,
    html: str | None = None,
) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = mail_settings.from_address or ""
    message["To"] = to
    message.set_content(text)
    if html:
        message.add_alternative(html, subtype="html")
    return message


def send_email(
    to: str,
    subject: str,
    text: str,
    html: str | None = None,
    *,
    mail_settings: MailSettings | None = None,
) -> bool:
    """Send one email.

    Returns:
        True if the message was handed to the SMTP server, False when mail is
        not configured or delivery failed.
    """
    cfg = mail_settings or settings.mail
    if not cfg.enabled:
        logger.info("mail.disabled", extra={"reason": "missing_configuration"})
        return False

    message = build_message(cfg, to, subject, text, html)
    try:
        with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_seconds) as client:
            if cfg.use_tls:
                client.starttls()
            if cfg.user and cfg.password:
                client.login(cfg.user, cfg.password)
            client.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning(
            "mail.send_failed",
            extra={"error_type": type(exc).__name__, "error_msg": str(exc)},
        )
        return False

    logger.info("mail.sent", extra={"subject": subject})
    return True


def send_welcome_email(username: str, email: str) -> bool:
    return send_email(
        to=email,
        subject="Welcome to the blog",
        text=f"Hi {username},\n\nYour account is ready. Happy writing!\n",
        html=f"<p>Hi {username},</p><p>Your account is ready. Happy writing!</p>",
    )
