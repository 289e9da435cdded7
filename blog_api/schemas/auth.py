"""Pydantic schemas for registration, login and user payloads."""

from __future__ import annotations

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from blog_api.schemas.common import CamelModel

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


class RegisterRequest(BaseModel):
    username: str = Field(..., description="3-30 letters, digits or underscores")
    email: EmailStr
    password: str = Field(..., description="At least 6 characters")

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Username is required")
        if not 3 <= len(value) <= 30:
            raise ValueError("Username must be 3-30 characters")
        if not _USERNAME_RE.match(value):
            raise ValueError("Username may only contain letters, digits and underscores")
        return value

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        if len(value) > 128:
            raise ValueError("Password cannot exceed 128 characters")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.lower()


class UserPublic(CamelModel):
    """User fields safe to expose (embedded in posts as ``user``)."""

    id: int
    username: str
    email: str


class AuthResponse(CamelModel):
    success: bool = True
    message: str | None = None
    token: str
    user: UserPublic


class CurrentUserResponse(CamelModel):
    success: bool = True
    user: UserPublic
