"""
Constants for attachment uploads.

Limits that operators tune live in settings (UPLOAD_MAX_SIZE,
UPLOAD_RETENTION_DAYS, MEDIA_ROOT); the accessors below read them at call
time so tests can override settings.
"""

from __future__ import annotations

from pathlib import Path

from django.conf import settings


class UPLOAD_CONFIG:
    """Accepted content and storage layout for uploads."""

    ALLOWED_MIME_TYPES = frozenset(
        {
            "image/jpeg",
            "image/jpg",
            "image/png",
            "image/gif",
            "application/pdf",
            "text/plain",
            "text/csv",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        }
    )

    IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif"})

    EXTENSION_TO_MIME = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".gif": "image/gif",
        ".pdf": "application/pdf",
        ".txt": "text/plain",
        ".csv": "text/csv",
        ".doc": "application/msword",
        ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }

    DEFAULT_MIME_TYPE = "application/octet-stream"

    # Bytes read for libmagic content detection
    MAGIC_HEADER_BYTES = 2048

    # Container types libmagic may report for Office documents
    CONTAINER_MIME_TYPES = {
        ".doc": frozenset(
            {"application/CDFV2", "application/vnd.ms-office", "application/x-ole-storage"}
        ),
        ".docx": frozenset({"application/zip"}),
    }

    DEFAULT_MAX_SIZE = 10 * 1024 * 1024  # 10MB
    DEFAULT_RETENTION_DAYS = 30

    # Stored names look like 1718000000000_1a2b3c4d5e6f7a8b.png
    STORED_NAME_PATTERN = r"^[0-9]+_[0-9a-f]+(\.[A-Za-z0-9]+)?$"
    TOKEN_BYTES = 8
    MAX_EXTENSION_LENGTH = 10


def upload_max_size() -> int:
    return getattr(settings, "UPLOAD_MAX_SIZE", UPLOAD_CONFIG.DEFAULT_MAX_SIZE)


def upload_retention_days() -> int:
    return getattr(settings, "UPLOAD_RETENTION_DAYS", UPLOAD_CONFIG.DEFAULT_RETENTION_DAYS)


def upload_root() -> Path:
    return Path(settings.MEDIA_ROOT)


def upload_url(filename: str) -> str:
    return f"{settings.MEDIA_URL.rstrip('/')}/{filename}"


def mime_type_for(filename: str) -> str:
    """Guess a MIME type from the extension, restricted to known types."""
    return UPLOAD_CONFIG.EXTENSION_TO_MIME.get(
        Path(filename).suffix.lower(), UPLOAD_CONFIG.DEFAULT_MIME_TYPE
    )


def is_image(mime_type: str | None) -> bool:
    return bool(mime_type) and mime_type.startswith("image/")
