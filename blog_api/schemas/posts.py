"""Pydantic schemas for blog posts.

Input strings are trimmed before their length is checked:
title 3-100, author 2-50, content 10-5000 characters.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, field_validator, model_validator

from blog_api.schemas.auth import UserPublic
from blog_api.schemas.common import CamelModel

TITLE_LENGTH = (3, 100)
AUTHOR_LENGTH = (2, 50)
CONTENT_LENGTH = (10, 5000)

SortField = Literal["createdAt", "updatedAt", "title", "author"]
SortOrder = Literal["asc", "desc"]


def _check_length(value: str, label: str, bounds: tuple[int, int]) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    low, high = bounds
    if not low <= len(value) <= high:
        raise ValueError(f"{label} must be {low}-{high} characters")
    return value


class PostCreate(BaseModel):
    title: str
    author: str
    content: str

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str) -> str:
        return _check_length(value, "Title", TITLE_LENGTH)

    @field_validator("author")
    @classmethod
    def _check_author(cls, value: str) -> str:
        return _check_length(value, "Author", AUTHOR_LENGTH)

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: str) -> str:
        return _check_length(value, "Content", CONTENT_LENGTH)


class PostUpdate(BaseModel):
    """Partial update; at least one field must be provided."""

    title: str | None = None
    author: str | None = None
    content: str | None = None

    @field_validator("title")
    @classmethod
    def _check_title(cls, value: str | None) -> str | None:
        return None if value is None else _check_length(value, "Title", TITLE_LENGTH)

    @field_validator("author")
    @classmethod
    def _check_author(cls, value: str | None) -> str | None:
        return None if value is None else _check_length(value, "Author", AUTHOR_LENGTH)

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: str | None) -> str | None:
        return None if value is None else _check_length(value, "Content", CONTENT_LENGTH)

    @model_validator(mode="after")
    def _require_one_field(self) -> "PostUpdate":
        if self.title is None and self.author is None and self.content is None:
            raise ValueError("At least one field (title, author, or content) must be provided")
        return self

    def changes(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


class PostOut(CamelModel):
    id: int
    title: str
    author: str
    content: str
    user: UserPublic | None = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes for timezone-aware columns
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class PostResponse(CamelModel):
    success: bool = True
    message: str | None = None
    post: PostOut


class PostListResponse(CamelModel):
    success: bool = True
    page: int
    limit: int
    total: int
    total_pages: int
    count: int
    posts: list[PostOut]


class UserPostsResponse(CamelModel):
    success: bool = True
    count: int
    posts: list[PostOut]


class UploadResponse(CamelModel):
    success: bool = True
    message: str
    filename: str
    path: str
