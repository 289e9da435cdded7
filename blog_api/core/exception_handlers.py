"""Global exception handlers for consistent error responses.

Every error leaves the API in the same envelope::

    {
        "success": false,
        "message": "Post not found",
        "error": {"code": "post_not_found", "message": "...", "request_id": "..."}
    }

Design:
- AppError subclasses -> their ``status_code`` (400, 401, 403, 404, 409)
- HTTPException (401 from auth, 413 from uploads, 429 from the rate limiter)
  -> same status, headers preserved
- Request validation errors -> 400 with per-field messages
- Unexpected Exception -> generic 500 (safety net)
"""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blog_api.core.config import settings
from blog_api.core.errors import AppError
from blog_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "not_authenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    429: "rate_limited",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    *,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the error envelope shared by all handlers."""
    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    # Include details only if present (optional structured context)
    if details:
        error_content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error_content},
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    The HTTP status comes from the error class (``AppError.status_code``).
    """
    status_code = exc.status_code

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return error_response(status_code, exc.code, exc.message, details=exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors in the shared envelope, keeping headers."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")

    logger.info(
        "http_error_handled",
        extra={
            "error_code": code,
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return error_response(
        exc.status_code,
        code,
        message,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as 400 with one entry per field."""
    errors = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "Invalid value")
        # Pydantic prefixes custom validator messages with "Value error, "
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(location) or None, "message": message})

    logger.info(
        "validation_failed",
        extra={
            "error_count": len(errors),
            "fields": [e["field"] for e in errors],
            "request_path": request.url.path,
        },
    )

    return error_response(
        400,
        "validation_failed",
        "Validation failed",
        details={"errors": errors},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information while returning a generic message. The
    traceback is only exposed to clients when ``APP_DEBUG`` is on.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )

    details = None
    if settings.app.debug:
        details = {"context": {"stack": traceback.format_exception(exc)}}

    return error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
        details=details,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
