"""Application-level exception types.

This module defines domain errors used across services and routes, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep shapes flexible while encouraging
    consistency across the codebase.
    """

    hint: str
    field: str
    errors: list[dict[str, Any]]
    resource: str
    resource_id: int
    max_bytes: int
    allowed_types: list[str]
    retry_after: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""

    status_code = 400


class AuthenticationAppError(AppError):
    """Raised when credentials or tokens are missing or invalid."""

    status_code = 401


class PermissionAppError(AppError):
    """Raised when an authenticated user may not act on a resource."""

    status_code = 403


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class ConflictAppError(AppError):
    """Raised when a write collides with existing state (e.g., duplicate email)."""

    status_code = 409
