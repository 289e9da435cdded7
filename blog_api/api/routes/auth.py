from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, status

from blog_api.core.auth import CurrentUser
from blog_api.core.config import settings
from blog_api.core.rate_limit import AUTH_SCOPE, rate_limited
from blog_api.core.security import create_access_token
from blog_api.db.session import DbSession
from blog_api.schemas.auth import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
    UserPublic,
)
from blog_api.services.mailer import send_welcome_email
from blog_api.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited(AUTH_SCOPE))],
)
def register(
    payload: RegisterRequest,
    session: DbSession,
    background_tasks: BackgroundTasks,
) -> AuthResponse:
    """Create an account and return an access token for it.

    A welcome email is queued when SMTP is configured.

    Raises:
        ConflictAppError: 409 if the username or email is taken.
    """
    user = UserService(session).register(payload)
    if settings.mail.enabled:
        background_tasks.add_task(send_welcome_email, user.username, user.email)

    return AuthResponse(
        message="User registered",
        token=create_access_token(user.id),
        user=UserPublic.model_validate(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(rate_limited(AUTH_SCOPE))],
)
def login(payload: LoginRequest, session: DbSession) -> AuthResponse:
    """Exchange email and password for an access token.

    Raises:
        AuthenticationAppError: 401 on unknown email or wrong password.
    """
    user = UserService(session).authenticate(payload)
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id),
        user=UserPublic.model_validate(user),
    )


@router.get("/me", response_model=CurrentUserResponse)
def me(user: CurrentUser) -> CurrentUserResponse:
    """Return the authenticated user."""
    return CurrentUserResponse(user=UserPublic.model_validate(user))
