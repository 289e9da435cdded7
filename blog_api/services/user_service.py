"""User registration and credential checks."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_api.core.errors import AuthenticationAppError, ConflictAppError
from blog_api.core.security import get_password_hash, verify_password
from blog_api.db.models import User
from blog_api.schemas.auth import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


class UserService:
    """Creates users and verifies their credentials."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def register(self, payload: RegisterRequest) -> User:
        """Create a user with a hashed password.

        Raises:
            ConflictAppError: If the username or email is already taken.
        """
        existing = self._session.scalars(
            select(User).where(
                or_(User.username == payload.username, User.email == payload.email)
            )
        ).first()
        if existing is not None:
            field = "email" if existing.email == payload.email else "username"
            logger.info("user.register_conflict", extra={"field": field})
            raise ConflictAppError(
                code=f"{field}_taken",
                message=f"A user with this {field} already exists",
                details={"field": field},
            )

        user = User(
            username=payload.username,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
        )
        self._session.add(user)
        try:
            self._session.commit()
        except IntegrityError as exc:
            # Lost a race against a concurrent registration with the same identity
            self._session.rollback()
            raise ConflictAppError(
                code="user_exists",
                message="A user with this username or email already exists",
            ) from exc

        logger.info("user.registered", extra={"user_id": user.id})
        return user

    def authenticate(self, payload: LoginRequest) -> User:
        """Return the user matching the credentials.

        Raises:
            AuthenticationAppError: If the email is unknown or the password is wrong.
        """
        user = self._session.scalars(select(User).where(User.email == payload.email)).first()
        if user is None or not verify_password(payload.password, user.hashed_password):
            logger.info("user.login_failed")
            raise AuthenticationAppError(
                code="invalid_credentials",
                message="Invalid email or password",
            )

        logger.info("user.logged_in", extra={"user_id": user.id})
        return user
