"""Bearer token authentication for protected routes.

Design principles:
- Pure lookup logic (``resolve_user``) separated from the FastAPI dependency
- Dependency Injection: routes use ``Depends(get_current_user)``
- Failures surface as 401 with a ``WWW-Authenticate: Bearer`` challenge
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from blog_api.core.errors import AuthenticationAppError
from blog_api.core.security import decode_access_token
from blog_api.db.models import User
from blog_api.db.session import get_db

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="JWT access token")


def resolve_user(session: Session, token: str) -> User:
    """Return the user a token belongs to.

    Args:
        session: Database session.
        token: Raw JWT from the Authorization header.

    Raises:
        AuthenticationAppError: If the token is invalid or the user is gone.
    """
    user_id = decode_access_token(token)
    user = session.get(User, user_id)
    if user is None:
        logger.warning("auth.unknown_user", extra={"user_id": user_id})
        raise AuthenticationAppError(
            code="user_not_found",
            message="User no longer exists",
        )
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    session: Annotated[Session, Depends(get_db)],
) -> User:
    """FastAPI dependency returning the authenticated user.

    Usage:
        @router.post("/protected")
        def protected(user: User = Depends(get_current_user)): ...

    Raises:
        HTTPException: 401 Unauthorized if the token is missing or invalid.
    """
    if credentials is None or not credentials.credentials:
        logger.info("auth.missing_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = resolve_user(session, credentials.credentials)
    except AuthenticationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    logger.debug("auth.success", extra={"user_id": user.id})
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
