"""Post CRUD, listing, search and ownership checks.

Listing semantics:
- ``search`` matches title or content, case-insensitive substring
- ``author`` matches the author field, case-insensitive substring
- default order is newest first; ties are broken by id so pages are stable
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from blog_api.core.errors import NotFoundAppError, PermissionAppError
from blog_api.db.models import Post, User
from blog_api.schemas.posts import PostCreate, PostUpdate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "createdAt": Post.created_at,
    "updatedAt": Post.updated_at,
    "title": Post.title,
    "author": Post.author,
}


@dataclass(frozen=True)
class PostQuery:
    """Listing parameters after HTTP-level validation."""

    page: int = 1
    limit: int = 10
    search: str | None = None
    author: str | None = None
    sort_by: str = "createdAt"
    order: str = "desc"


@dataclass(frozen=True)
class PostPage:
    page: int
    limit: int
    total: int
    posts: list[Post]

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column, term: str):
    return column.ilike(f"%{_escape_like(term)}%", escape="\\")


class PostService:
    """Database operations on posts for the current request's session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, payload: PostCreate, owner: User) -> Post:
        post = Post(
            title=payload.title,
            author=payload.author,
            content=payload.content,
            user=owner,
        )
        self._session.add(post)
        self._session.commit()
        logger.info("post.created", extra={"post_id": post.id, "user_id": owner.id})
        return post

    def get(self, post_id: int) -> Post:
        """Return a post by id.

        Raises:
            NotFoundAppError: If no post has this id.
        """
        post = self._session.get(Post, post_id)
        if post is None:
            raise NotFoundAppError(
                code="post_not_found",
                message="Post not found",
                details={"resource": "post", "resource_id": post_id},
            )
        return post

    def paginate(self, query: PostQuery) -> PostPage:
        filters = []
        if query.search:
            filters.append(or_(_contains(Post.title, query.search), _contains(Post.content, query.search)))
        if query.author:
            filters.append(_contains(Post.author, query.author))

        total = self._session.scalar(select(func.count()).select_from(Post).where(*filters)) or 0

        column = SORT_COLUMNS[query.sort_by]
        ordering = column.asc() if query.order == "asc" else column.desc()
        tie_breaker = Post.id.asc() if query.order == "asc" else Post.id.desc()

        statement = (
            select(Post)
            .where(*filters)
            .order_by(ordering, tie_breaker)
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
        posts = list(self._session.scalars(statement).unique())

        logger.debug(
            "post.listed",
            extra={
                "page": query.page,
                "limit": query.limit,
                "total": total,
                "has_search": bool(query.search),
                "has_author_filter": bool(query.author),
            },
        )
        return PostPage(page=query.page, limit=query.limit, total=total, posts=posts)

    def list_for_user(self, user: User) -> list[Post]:
        statement = (
            select(Post)
            .where(Post.user_id == user.id)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return list(self._session.scalars(statement).unique())

    def _get_owned(self, post_id: int, user: User, action: str) -> Post:
        post = self.get(post_id)
        if post.user_id != user.id:
            logger.warning(
                "post.forbidden",
                extra={"post_id": post_id, "user_id": user.id, "action": action},
            )
            raise PermissionAppError(
                code="post_forbidden",
                message=f"Forbidden: You can only {action} your own posts",
            )
        return post

    def update(self, post_id: int, payload: PostUpdate, user: User) -> Post:
        """Apply a partial update to a post owned by ``user``.

        Raises:
            NotFoundAppError: If the post does not exist.
            PermissionAppError: If ``user`` is not the owner.
        """
        post = self._get_owned(post_id, user, "edit")
        for field, value in payload.changes().items():
            setattr(post, field, value)
        self._session.commit()
        self._session.refresh(post)
        logger.info("post.updated", extra={"post_id": post.id, "fields": sorted(payload.changes())})
        return post

    def delete(self, post_id: int, user: User) -> None:
        """Delete a post owned by ``user``.

        Raises:
            NotFoundAppError: If the post does not exist.
            PermissionAppError: If ``user`` is not the owner.
        """
        post = self._get_owned(post_id, user, "delete")
        self._session.delete(post)
        self._session.commit()
        logger.info("post.deleted", extra={"post_id": post_id, "user_id": user.id})
