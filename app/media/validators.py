"""
Upload validators.

The MIME type is detected from the file's content with python-magic and
checked against the allow-list; the client's declared type and the file
extension are only trusted when they agree with the content. Images are
opened with Pillow so a truncated or corrupt picture is rejected too.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import magic
from PIL import Image

from core.exceptions import ValidationError
from media.constants import UPLOAD_CONFIG, is_image, mime_type_for, upload_max_size


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ValidationResult:
    """Result of upload validation.

    Attributes:
        is_valid: Whether the file passed validation.
        mime_type: MIME type detected from the file content.
        is_image: Whether the file is an image attachment.
        error: Human-readable error message if validation failed.
        error_code: Machine-readable error code if validation failed.
    """

    is_valid: bool
    mime_type: str | None = None
    is_image: bool = False
    error: str | None = None
    error_code: str | None = None


# =============================================================================
# Validator Class
# =============================================================================


class UploadValidator:
    """Validates attachment uploads.

    Uses python-magic (libmagic) to detect file types from content rather than
    trusting the extension or the Content-Type header sent by the client.

    Example:
        validator = UploadValidator()
        result = validator.validate(upload, upload.name, upload.content_type)
        if not result.is_valid:
            raise FileUploadError(result.error, error_code=result.error_code)
    """

    def __init__(
        self,
        allowed_mime_types: frozenset[str] | None = None,
        max_size: int | None = None,
    ) -> None:
        self._allowed_mime_types = allowed_mime_types or UPLOAD_CONFIG.ALLOWED_MIME_TYPES
        self._max_size = max_size
        self._magic = magic.Magic(mime=True)

    @property
    def max_size(self) -> int:
        return self._max_size if self._max_size is not None else upload_max_size()

    def validate(
        self,
        file: BinaryIO,
        name: str = "",
        content_type: str | None = None,
    ) -> ValidationResult:
        """Validate an upload.

        Performs the following checks in order:
        1. Empty file check
        2. MIME type detection from content
        3. Claimed image check (declared type or extension says image)
        4. MIME type allow-list check
        5. Extension/content agreement check
        6. Size limit check
        7. Image content check (images only)

        Args:
            file: File-like object. Must support read() and seek().
            name: Original file name.
            content_type: Content type declared by the client.

        Returns:
            ValidationResult with the outcome and detected MIME type.
        """
        file.seek(0, 2)
        file_size = file.tell()
        file.seek(0)

        if file_size == 0:
            return ValidationResult(
                is_valid=False,
                error="File is empty",
                error_code="EMPTY_FILE",
            )

        detected = self._detect_mime_type(file)
        if detected is None:
            return ValidationResult(
                is_valid=False,
                error="Could not detect file type",
                error_code="INVALID_FILE_TYPE",
            )
        mime_type = self._normalize(detected, name)

        claimed = _declared_type(content_type)
        if (is_image(claimed) or is_image(mime_type_for(name))) and not is_image(mime_type):
            return ValidationResult(
                is_valid=False,
                mime_type=mime_type,
                error="File content is not a valid image",
                error_code="INVALID_IMAGE",
            )

        if mime_type not in self._allowed_mime_types:
            return ValidationResult(
                is_valid=False,
                mime_type=mime_type,
                error=f"File type {mime_type} is not allowed",
                error_code="INVALID_FILE_TYPE",
            )

        if self.check_extension_mismatch(name, mime_type):
            return ValidationResult(
                is_valid=False,
                mime_type=mime_type,
                error="File extension does not match its content",
                error_code="INVALID_FILE_TYPE",
            )

        if file_size > self.max_size:
            return ValidationResult(
                is_valid=False,
                mime_type=mime_type,
                error=f"File exceeds the maximum size of {self.max_size} bytes",
                error_code="FILE_TOO_LARGE",
            )

        image = is_image(mime_type)
        if image and not self._is_readable_image(file):
            return ValidationResult(
                is_valid=False,
                mime_type=mime_type,
                error="File content is not a valid image",
                error_code="INVALID_IMAGE",
            )

        return ValidationResult(is_valid=True, mime_type=mime_type, is_image=image)

    @staticmethod
    def check_extension_mismatch(name: str, mime_type: str) -> bool:
        """Check whether a known extension names a different type than the content.

        Names without an extension, or with one outside the allow-list, are
        not a mismatch; they are stored without a usable extension.
        """
        expected = mime_type_for(name)
        if expected == UPLOAD_CONFIG.DEFAULT_MIME_TYPE:
            return False
        return _canonical(expected) != _canonical(mime_type)

    def _detect_mime_type(self, file: BinaryIO) -> str | None:
        """Detect MIME type from file content using libmagic."""
        file.seek(0)
        header = file.read(UPLOAD_CONFIG.MAGIC_HEADER_BYTES)
        file.seek(0)

        if not header:
            return None

        try:
            return self._magic.from_buffer(header)
        except magic.MagicException:
            return None

    @staticmethod
    def _normalize(detected: str, name: str) -> str:
        # libmagic reports Office files by their container format on some
        # builds, and cannot tell CSV from plain text.
        extension = Path(name).suffix.lower()
        if detected in UPLOAD_CONFIG.CONTAINER_MIME_TYPES.get(extension, ()):
            return mime_type_for(name)
        if detected == "text/plain" and extension == ".csv":
            return "text/csv"
        return detected

    @staticmethod
    def _is_readable_image(file: BinaryIO) -> bool:
        try:
            with Image.open(file) as img:
                img.verify()
        except (Image.UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError):
            return False
        finally:
            file.seek(0)
        return True


def _declared_type(content_type: str | None) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def _canonical(mime_type: str) -> str:
    if mime_type == "image/jpg":
        return "image/jpeg"
    if mime_type == "text/csv":
        return "text/plain"
    return mime_type


# =============================================================================
# Stored Name Validation
# =============================================================================

_STORED_NAME_RE = re.compile(UPLOAD_CONFIG.STORED_NAME_PATTERN)


def validate_stored_filename(filename: str) -> str:
    """
    Check a filename taken from a URL against the stored-name format.

    Rejects path separators and anything the storage layer would not have
    generated.

    Raises:
        ValidationError: If the name is not a stored upload name.
    """
    if not filename or not _STORED_NAME_RE.fullmatch(filename):
        raise ValidationError("Invalid filename", details={"filename": filename})
    return filename
