"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapters into the HTTP layer.

- Limiters are owned by the application: the app factory builds one limiter
  per scope (``auth`` for login/registration, ``api`` for writes) and stores
  them on ``app.state.rate_limiters``. Nothing is kept at module level, so
  every app instance (and every test) starts with empty counters.
- Clients are keyed by network address. Behind a reverse proxy, set
  ``APP_RATE_LIMIT_TRUST_FORWARDED_FOR=true`` to key by the left-most
  ``X-Forwarded-For`` address instead; leave it off otherwise, since clients
  can forge that header.
- On rejection the dependency raises HTTP 429, so the route handler never
  runs.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from blog_api.adapters.rate_limit.base import AbstractRateLimiter
from blog_api.adapters.rate_limit.factory import create_rate_limiter
from blog_api.core.config import AppSettings, settings

logger = logging.getLogger(__name__)

AUTH_SCOPE = "auth"
API_SCOPE = "api"


def build_rate_limiters(app_settings: AppSettings) -> dict[str, AbstractRateLimiter]:
    """Create the limiter for every scope from configuration.

    Args:
        app_settings: Application settings holding the ``rate_limit_*`` values.

    Returns:
        Mapping of scope name to limiter instance.
    """

    def _build(limit: int) -> AbstractRateLimiter:
        return create_rate_limiter(
            strategy=app_settings.rate_limit_strategy,
            limit=limit,
            window_seconds=app_settings.rate_limit_window_seconds,
            max_entries=app_settings.rate_limit_max_entries,
            sweep_interval_seconds=app_settings.rate_limit_sweep_interval_seconds,
        )

    return {
        AUTH_SCOPE: _build(app_settings.rate_limit_requests),
        API_SCOPE: _build(app_settings.rate_limit_api_requests),
    }


def get_client_key(request: Request, *, trust_forwarded_for: bool = False) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.
        trust_forwarded_for: Use the left-most X-Forwarded-For address.

    Returns:
        str: Namespaced limiter key, e.g. ``ip:203.0.113.7``.
    """

    if trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return f"ip:{first_hop}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limited(scope: str) -> Callable[[Request], Awaitable[None]]:
    """Return a dependency enforcing the limiter registered under ``scope``.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limited(AUTH_SCOPE))])
    """

    async def enforce_rate_limit(request: Request) -> None:
        """Consume one request from the client's budget or raise HTTP 429.

        Raises:
            HTTPException: 429 Too Many Requests when the budget is exhausted.
        """

        if not settings.app.rate_limit_enabled:
            return

        limiter: AbstractRateLimiter = request.app.state.rate_limiters[scope]
        key = get_client_key(
            request,
            trust_forwarded_for=settings.app.rate_limit_trust_forwarded_for,
        )
        key_hash = _hash_limiter_key(key)

        result = limiter.consume(key)
        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "scope": scope,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        retry_after = result.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "scope": scope,
                "key_hash": key_hash,
                "limit": result.limit,
                "retry_after_s": retry_after,
                "request_path": request.url.path,
            },
        )

        headers: dict[str, str] = {}
        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(result.limit)
            headers["X-RateLimit-Remaining"] = str(result.remaining)
            headers["X-RateLimit-Reset"] = str(result.reset_at)

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers=headers or None,
        )

    enforce_rate_limit.__name__ = f"enforce_{scope}_rate_limit"
    return enforce_rate_limit
