"""
Local storage for chat attachments.

Uploads are streamed to MEDIA_ROOT chunk by chunk under a generated name
``{milliseconds}_{token}{ext}``. The size ceiling is enforced while writing,
so an oversized body never lands on disk in full; a partial file is removed
before the error propagates.

Usage:
    from media.storage import UploadStorage

    storage = UploadStorage()
    stored = storage.save(request.FILES["file"], mime_type="image/png")
    info = storage.info(stored.filename)
    storage.delete(stored.filename)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from datetime import timezone as dt_timezone
from pathlib import Path
from typing import TYPE_CHECKING

from django.utils import timezone

from core.exceptions import FileUploadError, NotFoundError
from core.helpers import format_file_size, generate_token, iso_timestamp
from media.constants import (
    UPLOAD_CONFIG,
    is_image,
    mime_type_for,
    upload_max_size,
    upload_root,
    upload_url,
)
from media.validators import validate_stored_filename

if TYPE_CHECKING:
    from collections.abc import Iterator

    from django.core.files.uploadedfile import UploadedFile

logger = logging.getLogger(__name__)


@dataclass
class StoredUpload:
    """A file written by UploadStorage.save()."""

    filename: str
    original_name: str
    size: int
    mime_type: str
    uploaded_at: datetime = field(default_factory=timezone.now)

    @property
    def url(self) -> str:
        return upload_url(self.filename)

    @property
    def is_image(self) -> bool:
        return is_image(self.mime_type)

    def to_dict(self) -> dict:
        return {
            "id": self.filename,
            "originalName": self.original_name,
            "filename": self.filename,
            "size": self.size,
            "sizeFormatted": format_file_size(self.size),
            "mimetype": self.mime_type,
            "url": self.url,
            "isImage": self.is_image,
            "uploadedAt": iso_timestamp(self.uploaded_at),
        }


class UploadStorage:
    """Filesystem storage rooted at MEDIA_ROOT."""

    def __init__(self, root: Path | str | None = None, max_size: int | None = None):
        self._root = Path(root) if root is not None else None
        self._max_size = max_size

    @property
    def root(self) -> Path:
        return self._root if self._root is not None else upload_root()

    @property
    def max_size(self) -> int:
        return self._max_size if self._max_size is not None else upload_max_size()

    # -------------------------------------------------------------------------
    # Naming
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_filename(original_name: str) -> str:
        extension = Path(original_name).suffix.lower()
        if len(extension) > UPLOAD_CONFIG.MAX_EXTENSION_LENGTH or not extension[1:].isalnum():
            extension = ""
        stamp = int(time.time() * 1000)
        return f"{stamp}_{generate_token(UPLOAD_CONFIG.TOKEN_BYTES)}{extension}"

    def path_for(self, filename: str) -> Path:
        return self.root / validate_stored_filename(filename)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def save(self, uploaded_file: UploadedFile, mime_type: str) -> StoredUpload:
        """
        Stream an uploaded file to disk.

        Raises:
            FileUploadError: If the file exceeds the size ceiling or cannot be
                written. Nothing is left on disk in either case.
        """
        original_name = Path(uploaded_file.name or "upload").name
        filename = self.generate_filename(original_name)
        self.root.mkdir(parents=True, exist_ok=True)
        target = self.root / filename

        written = 0
        try:
            with open(target, "xb") as destination:
                for chunk in uploaded_file.chunks():
                    written += len(chunk)
                    if written > self.max_size:
                        raise FileUploadError(
                            f"File exceeds the maximum size of "
                            f"{format_file_size(self.max_size)}",
                            error_code="FILE_TOO_LARGE",
                            details={"maxSize": self.max_size},
                        )
                    destination.write(chunk)
        except FileUploadError:
            target.unlink(missing_ok=True)
            raise
        except OSError as exc:
            target.unlink(missing_ok=True)
            logger.error(
                "Failed to write upload",
                extra={"event_type": "upload_write_failed", "upload_name": filename},
                exc_info=True,
            )
            raise FileUploadError("Could not store the file", error_code="STORAGE_ERROR") from exc

        logger.info(
            "Stored upload",
            extra={
                "event_type": "upload_stored",
                "upload_name": filename,
                "size": written,
                "mime_type": mime_type,
            },
        )
        return StoredUpload(
            filename=filename,
            original_name=original_name,
            size=written,
            mime_type=mime_type,
        )

    def info(self, filename: str) -> dict:
        """
        Describe a stored file.

        Raises:
            ValidationError: If the name is not a stored upload name.
            NotFoundError: If the file does not exist.
        """
        path = self.path_for(filename)
        try:
            stats = path.stat()
        except FileNotFoundError:
            raise NotFoundError("File not found", details={"filename": filename}) from None

        mime_type = mime_type_for(filename)
        return {
            "filename": filename,
            "size": stats.st_size,
            "sizeFormatted": format_file_size(stats.st_size),
            "mimetype": mime_type,
            "isImage": is_image(mime_type),
            "url": upload_url(filename),
            "createdAt": iso_timestamp(_from_epoch(stats.st_ctime)),
            "modifiedAt": iso_timestamp(_from_epoch(stats.st_mtime)),
        }

    def delete(self, filename: str) -> None:
        """
        Remove a stored file.

        Raises:
            ValidationError: If the name is not a stored upload name.
            NotFoundError: If the file does not exist.
        """
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError("File not found", details={"filename": filename}) from None
        logger.info(
            "Deleted upload",
            extra={"event_type": "upload_deleted", "upload_name": filename},
        )

    def discard(self, filename: str) -> None:
        """Remove a file if present; used to roll back a failed upload."""
        (self.root / filename).unlink(missing_ok=True)

    def expired(self, older_than: datetime) -> Iterator[Path]:
        """Yield stored files last modified before ``older_than``."""
        if not self.root.is_dir():
            return
        for entry in self.root.iterdir():
            if not entry.is_file():
                continue
            if _from_epoch(entry.stat().st_mtime) < older_than:
                yield entry


def _from_epoch(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=dt_timezone.utc)
