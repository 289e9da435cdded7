"""Password hashing and access token helpers.

Tokens are HS256 JWTs carrying the user id in ``sub``. Verification failures
are reported as :class:`AuthenticationAppError` so routes never see raw
PyJWT exceptions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from passlib.context import CryptContext

from blog_api.core.config import settings
from blog_api.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    user_id: int,
    *,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Issue a signed access token for ``user_id``.

    Args:
        user_id: Primary key of the authenticated user.
        expires_delta: Token lifetime; defaults to the configured minutes.
        extra_claims: Additional claims merged into the payload.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.auth.access_token_expire_minutes)

    payload: dict[str, Any] = dict(extra_claims or {})
    payload.update(
        {
            "sub": str(user_id),
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + expires_delta,
        }
    )
    return jwt.encode(payload, settings.auth.jwt_secret, algorithm=settings.auth.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """Verify a token and return the user id it was issued for.

    Raises:
        AuthenticationAppError: If the token is expired, tampered with, of the
            wrong type, or has no usable subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth.jwt_secret,
            algorithms=[settings.auth.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        logger.info("auth.token_expired")
        raise AuthenticationAppError(
            code="token_expired",
            message="Token expired",
        ) from exc
    except jwt.InvalidTokenError as exc:
        logger.warning("auth.token_invalid", extra={"error_type": type(exc).__name__})
        raise AuthenticationAppError(
            code="invalid_token",
            message="Invalid token",
        ) from exc

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise AuthenticationAppError(code="invalid_token", message="Invalid token")

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationAppError(code="invalid_token", message="Invalid token") from exc
