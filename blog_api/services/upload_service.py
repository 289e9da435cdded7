"""Storage of user uploads on the local filesystem."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from blog_api.core.config import parse_csv, settings
from blog_api.core.errors import ValidationAppError
from blog_api.utils.file_validators import extension_for, validate_file_signature

logger = logging.getLogger(__name__)

# URL prefix the upload directory is mounted under
PUBLIC_PREFIX = "uploads"


@dataclass(frozen=True)
class StoredFile:
    filename: str
    path: str
    file_type: str
    size: int


class UploadService:
    """Validates uploaded bytes and writes them under the upload directory.

    Stored names are random; the client's filename is never used on disk.
    """

    def __init__(self, upload_dir: str | Path, allowed_types: set[str] | None = None) -> None:
        self._upload_dir = Path(upload_dir)
        self._allowed_types = allowed_types or set(parse_csv(settings.app.allowed_upload_types))

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def store(self, data: bytes, *, original_filename: str | None = None) -> StoredFile:
        """Validate and persist an upload.

        Args:
            data: Entire file content.
            original_filename: Client-side name, used for logging only.

        Returns:
            StoredFile describing where the content was written.

        Raises:
            ValidationAppError: If the file is empty or of an unsupported type.
        """
        if not data:
            raise ValidationAppError(code="empty_file", message="Uploaded file is empty")

        try:
            file_type = validate_file_signature(data, self._allowed_types)
        except ValueError as exc:
            raise ValidationAppError(
                code="unsupported_file_type",
                message=str(exc),
                details={"allowed_types": sorted(self._allowed_types)},
            ) from exc

        filename = f"{uuid.uuid4().hex}{extension_for(file_type)}"
        self._upload_dir.mkdir(parents=True, exist_ok=True)
        (self._upload_dir / filename).write_bytes(data)

        logger.info(
            "upload.stored",
            extra={
                "stored_filename": filename,
                "original_filename": original_filename,
                "file_type": file_type,
                "size": len(data),
            },
        )
        return StoredFile(
            filename=filename,
            path=f"{PUBLIC_PREFIX}/{filename}",
            file_type=file_type,
            size=len(data),
        )
