"""File validation utilities for upload security.

Detects the real type of an upload from its magic number instead of trusting
the client-supplied filename or Content-Type, which prevents renamed
executables or scripts from being stored and served as images.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

logger = logging.getLogger(__name__)

UploadType = Literal["jpeg", "png", "gif", "webp", "pdf"]

# Magic number signatures for supported formats
SIGNATURES: dict[str, tuple[bytes, ...]] = {
    "jpeg": (b"\xff\xd8\xff",),
    "png": (b"\x89PNG\r\n\x1a\n",),
    "gif": (b"GIF87a", b"GIF89a"),
    "pdf": (b"%PDF-",),
}

EXTENSIONS: dict[str, str] = {
    "jpeg": ".jpg",
    "png": ".png",
    "gif": ".gif",
    "webp": ".webp",
    "pdf": ".pdf",
}


def detect_file_type(data: bytes) -> Optional[UploadType]:
    """Identify a supported file type from its leading bytes.

    Args:
        data: File content as bytes.

    Returns:
        The detected type, or None if the content matches no known signature.
    """
    if not data:
        return None

    # WEBP is a RIFF container: "RIFF" <4-byte size> "WEBP"
    if len(data) >= 12 and data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"

    for file_type, signatures in SIGNATURES.items():
        if any(data.startswith(sig) for sig in signatures):
            return file_type  # type: ignore[return-value]

    logger.warning(
        "file_signature.unknown",
        extra={"actual_prefix": data[:8].hex()},
    )
    return None


def validate_file_signature(data: bytes, allowed_types: set[str]) -> UploadType:
    """Return the detected type when it is one of ``allowed_types``.

    Raises:
        ValueError: If the content is not one of the allowed types.
    """
    detected = detect_file_type(data)
    if detected is None or detected not in allowed_types:
        logger.warning(
            "file_signature.rejected",
            extra={"detected_type": detected, "allowed_types": sorted(allowed_types)},
        )
        raise ValueError(
            f"Unsupported file type. Allowed types: {', '.join(sorted(allowed_types))}"
        )
    return detected


def extension_for(file_type: str) -> str:
    return EXTENSIONS[file_type]
