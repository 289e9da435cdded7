from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Path, Query, Request, UploadFile, status
from starlette.concurrency import run_in_threadpool

from blog_api.core.auth import CurrentUser
from blog_api.core.config import settings
from blog_api.core.errors import ValidationAppError
from blog_api.core.file_validation import read_upload_file_limited
from blog_api.core.rate_limit import API_SCOPE, rate_limited
from blog_api.db.session import DbSession
from blog_api.schemas.common import MessageResponse
from blog_api.schemas.posts import (
    PostCreate,
    PostListResponse,
    PostOut,
    PostResponse,
    PostUpdate,
    SortField,
    SortOrder,
    UploadResponse,
    UserPostsResponse,
)
from blog_api.services.post_service import PostQuery, PostService
from blog_api.services.upload_service import UploadService

router = APIRouter(prefix="/posts", tags=["Posts"])

write_rate_limit = Depends(rate_limited(API_SCOPE))

# Largest value SQLite can bind as an INTEGER
MAX_DB_INTEGER = 2**63 - 1
# Keeps (page - 1) * APP_MAX_PAGE_SIZE within MAX_DB_INTEGER
MAX_PAGE = 1_000_000_000

PostId = Annotated[int, Path(ge=1, le=MAX_DB_INTEGER, description="Post id")]


@router.post(
    "/upload",
    response_model=UploadResponse,
    dependencies=[write_rate_limit],
)
async def upload_file(
    request: Request,
    user: CurrentUser,
    image: UploadFile | None = File(None, description="Image (JPEG, PNG, GIF, WEBP) or PDF"),
) -> UploadResponse:
    """Upload an image or PDF and return where it is served from.

    Raises:
        ValidationAppError: 400 if no file was sent or its type is unsupported.
        HTTPException: 413 if the file exceeds the size limit.
    """
    if image is None or not image.filename:
        raise ValidationAppError(code="no_file_uploaded", message="No file uploaded")

    data = await read_upload_file_limited(image)
    service = UploadService(request.app.state.upload_dir)
    stored = await run_in_threadpool(service.store, data, original_filename=image.filename)

    return UploadResponse(
        message="File uploaded successfully",
        filename=stored.filename,
        path=stored.path,
    )


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[write_rate_limit],
)
def create_post(payload: PostCreate, user: CurrentUser, session: DbSession) -> PostResponse:
    """Create a post owned by the authenticated user."""
    post = PostService(session).create(payload, owner=user)
    return PostResponse(message="Post created", post=PostOut.model_validate(post))


@router.get("/my/posts", response_model=UserPostsResponse)
def list_my_posts(user: CurrentUser, session: DbSession) -> UserPostsResponse:
    """List the authenticated user's posts, newest first."""
    posts = PostService(session).list_for_user(user)
    return UserPostsResponse(
        count=len(posts),
        posts=[PostOut.model_validate(p) for p in posts],
    )


@router.get("", response_model=PostListResponse)
def list_posts(
    session: DbSession,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int | None = Query(None, ge=1, description="Posts per page (capped at APP_MAX_PAGE_SIZE)"),
    search: str | None = Query(None, description="Case-insensitive match on title or content"),
    author: str | None = Query(None, description="Case-insensitive match on author"),
    sort_by: SortField = Query("createdAt", alias="sortBy"),
    order: SortOrder = Query("desc"),
) -> PostListResponse:
    """List posts with pagination, search, author filter and sorting."""
    page_size = min(limit or settings.app.default_page_size, settings.app.max_page_size)
    query = PostQuery(
        page=page,
        limit=page_size,
        search=search.strip() if search else None,
        author=author.strip() if author else None,
        sort_by=sort_by,
        order=order,
    )
    result = PostService(session).paginate(query)

    return PostListResponse(
        page=result.page,
        limit=result.limit,
        total=result.total,
        total_pages=result.total_pages,
        count=len(result.posts),
        posts=[PostOut.model_validate(p) for p in result.posts],
    )


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: PostId, session: DbSession) -> PostResponse:
    """Fetch a single post.

    Raises:
        NotFoundAppError: 404 if the post does not exist.
    """
    post = PostService(session).get(post_id)
    return PostResponse(post=PostOut.model_validate(post))


@router.put(
    "/{post_id}",
    response_model=PostResponse,
    dependencies=[write_rate_limit],
)
def update_post(
    post_id: PostId,
    payload: PostUpdate,
    user: CurrentUser,
    session: DbSession,
) -> PostResponse:
    """Partially update one of the user's posts.

    Raises:
        NotFoundAppError: 404 if the post does not exist.
        PermissionAppError: 403 if the post belongs to someone else.
    """
    post = PostService(session).update(post_id, payload, user)
    return PostResponse(message="Post updated", post=PostOut.model_validate(post))


@router.delete(
    "/{post_id}",
    response_model=MessageResponse,
    dependencies=[write_rate_limit],
)
def delete_post(post_id: PostId, user: CurrentUser, session: DbSession) -> MessageResponse:
    """Delete one of the user's posts.

    Raises:
        NotFoundAppError: 404 if the post does not exist.
        PermissionAppError: 403 if the post belongs to someone else.
    """
    PostService(session).delete(post_id, user)
    return MessageResponse(message="Post deleted")
