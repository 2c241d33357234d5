"""
Test fixtures for the media app.

Provides fixtures for:
- Sample files (PNG, PDF, plain text)
- Files the validator must reject (renamed binaries, empty files)
"""

from __future__ import annotations

import io
import zipfile

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


def zip_bytes() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("payload.bin", b"\x00" * 256)
    return buffer.getvalue()


def png_bytes(size: tuple[int, int] = (8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


# =============================================================================
# Valid File Fixtures
# =============================================================================


@pytest.fixture
def sample_png() -> SimpleUploadedFile:
    """A small, valid PNG image."""
    return SimpleUploadedFile("photo.png", png_bytes(), content_type="image/png")


@pytest.fixture
def sample_pdf() -> SimpleUploadedFile:
    return SimpleUploadedFile("invoice.pdf", PDF_BYTES, content_type="application/pdf")


@pytest.fixture
def sample_text() -> SimpleUploadedFile:
    return SimpleUploadedFile("notes.txt", b"order #12345\n", content_type="text/plain")


# =============================================================================
# Invalid File Fixtures
# =============================================================================


@pytest.fixture
def sample_zip() -> SimpleUploadedFile:
    return SimpleUploadedFile(
        "archive.zip",
        zip_bytes(),
        content_type="application/zip",
    )


@pytest.fixture
def fake_png() -> SimpleUploadedFile:
    """Text renamed to .png and declared as an image."""
    return SimpleUploadedFile("photo.png", b"definitely not an image", content_type="image/png")


@pytest.fixture
def empty_file() -> SimpleUploadedFile:
    return SimpleUploadedFile("empty.txt", b"", content_type="text/plain")
