"""Structured logging for the blog API.

Every record is emitted as one JSON object (or a plain line with
``LOG_FORMAT=plain``) carrying the request id of the HTTP request that
produced it.

Two groups of fields never reach a log sink:
- credentials: the bearer header, issued JWTs, the signing secret, user
  passwords and their hashes, and the SMTP password
- post bodies: ``content`` may hold anything an author typed, so only ids,
  titles and sizes are logged

Handlers:
- ``LOG_OUTPUT=stdout`` (default) writes to stdout; ``LOG_OUTPUT=file``
  writes to ``LOG_FILE_PATH`` (``logs/combined.log``), rotated at
  ``LOG_MAX_BYTES``
- ``LOG_ERROR_FILE_PATH`` adds a second file that receives ERROR and above
  only, so failed requests and mail errors can be read without the access log
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from blog_api.core.config import LogSettings, settings

REDACTED = "[REDACTED]"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "cookie",
        "set-cookie",
        "token",
        "access_token",
        "secret",
        "jwt_secret",
        "password",
        "hashed_password",
        "smtp_password",
    }
)

POST_BODY_KEYS: frozenset[str] = frozenset({"content"})

SENSITIVE_KEYS_DEFAULT: set[str] = set(CREDENTIAL_KEYS | POST_BODY_KEYS)

# LogRecord internals that are not user-supplied extras
_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "stack",
    }
)


def set_request_id(request_id: str | None) -> None:
    """Bind ``request_id`` to every record logged from the current context."""
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def _redact(value: Any, sensitive_keys: set[str]) -> Any:
    """Replace values under sensitive keys, descending into dicts and lists.

    Keys are compared case-insensitively, so a logged ``headers`` mapping
    with ``Authorization`` is caught the same as a top-level
    ``authorization`` extra.
    """
    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in sensitive_keys else _redact(v, sensitive_keys)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(v, sensitive_keys) for v in value)
    return value


def _record_extras(record: LogRecord, sensitive_keys: set[str]) -> dict[str, Any]:
    extras: dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        extras[key] = REDACTED if key.lower() in sensitive_keys else _redact(value, sensitive_keys)
    return extras


class RequestIdFilter(logging.Filter):
    """Copy the context request id onto records that do not carry one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact credentials and post bodies on the record itself.

    Runs before any formatter, so the plain formatter and third-party
    handlers see the redacted values too.
    """

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = {k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)}

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in _record_extras(record, self.sensitive_keys).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, message, extras."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.sensitive_keys = {k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT)}
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id

        payload.update(_record_extras(record, self.sensitive_keys))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _file_handler(path: str, log_settings: LogSettings) -> logging.Handler:
    """Open ``path`` for appending, rotating when ``LOG_MAX_BYTES`` is set."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def _build_handlers(log_settings: LogSettings) -> list[logging.Handler]:
    """Return the combined handler plus the optional error-only file handler.

    Args:
        log_settings: Resolved ``LOG_*`` settings.

    Returns:
        ``[combined]`` or ``[combined, errors]``. The combined handler takes
        every record at the root level; the errors handler is set to ERROR.
    """
    if log_settings.output.lower() == "file":
        combined = _file_handler(log_settings.file_path or "logs/combined.log", log_settings)
    else:
        combined = logging.StreamHandler(sys.stdout)
    handlers = [combined]

    if log_settings.error_file_path:
        errors = _file_handler(log_settings.error_file_path, log_settings)
        errors.setLevel(logging.ERROR)
        handlers.append(errors)

    return handlers


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the blog API handlers on the root logger.

    Replaces any existing root handlers, attaches the request id and
    redaction filters to each new handler, and sets the root level from
    ``LOG_LEVEL``.

    Args:
        log_settings: Settings to apply; defaults to ``settings.log``.
    """
    cfg = log_settings or settings.log
    level = getattr(logging, cfg.level.upper(), logging.INFO)

    if cfg.format.lower() == "plain":
        formatter: logging.Formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s"
        )
    else:
        formatter = JsonFormatter()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    for handler in _build_handlers(cfg):
        handler.addFilter(RequestIdFilter())
        handler.addFilter(SensitiveDataFilter())
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    root_logger.setLevel(level)

    # uvicorn installs its own handlers; stop its records reaching ours twice
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
