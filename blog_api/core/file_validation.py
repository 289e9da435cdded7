"""File validation utilities for upload security."""
from __future__ import annotations

import logging

from fastapi import HTTPException, UploadFile, status

from blog_api.core.config import settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def _too_large(max_mb: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_413_CONTENT_TOO_LARGE,
        detail=f"File too large. Maximum size: {max_mb}MB",
    )


async def read_upload_file_limited(file: UploadFile, *, max_mb: int | None = None) -> bytes:
    """Read an uploaded file in chunks enforcing the max size limit.

    Uses ``file.size`` when the multipart parser reported it, then enforces
    the limit again while reading so an unreported size cannot bypass it.

    Args:
        file: FastAPI upload file instance.
        max_mb: Limit in megabytes; defaults to ``APP_MAX_UPLOAD_SIZE_MB``.

    Returns:
        File content as bytes if within the allowed size limit.

    Raises:
        HTTPException: 413 if the file exceeds the configured size limit.
    """
    limit_mb = max_mb or settings.app.max_upload_size_mb
    max_bytes = limit_mb * 1024 * 1024

    file_size = getattr(file, "size", None)
    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes},
        )
        raise _too_large(limit_mb)

    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise _too_large(limit_mb)
        chunks.append(chunk)

    return b"".join(chunks)
