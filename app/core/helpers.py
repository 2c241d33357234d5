"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Token generation (cryptographic)
- UUID validation
- Timestamps in the API's ISO-8601 format
- Human-readable byte sizes
- HTTP request helpers (client IP extraction)

Usage:
    from core.helpers import generate_token, iso_timestamp, get_client_ip

    token = generate_token(8)
    stamp = iso_timestamp()
    ip = get_client_ip(request)
"""

from __future__ import annotations

import secrets
import uuid
from typing import TYPE_CHECKING

from django.utils import timezone

if TYPE_CHECKING:
    from datetime import datetime

    from django.http import HttpRequest


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)

    Returns:
        Hexadecimal token string
    """
    return secrets.token_hex(length)


def validate_uuid(value: str) -> bool:
    """
    Check if string is a valid UUID.

    Example:
        is_valid = validate_uuid("550e8400-e29b-41d4-a716-446655440000")  # True
    """
    try:
        uuid.UUID(value)
        return True
    except (ValueError, TypeError, AttributeError):
        return False


def iso_timestamp(value: datetime | None = None) -> str:
    """
    Format a datetime (default: now) as ISO-8601 with a ``Z`` suffix.

    Matches the representation DRF uses for DateTimeField output, so envelope
    timestamps and serialized model timestamps look the same.
    """
    value = value or timezone.now()
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def format_file_size(size: int) -> str:
    """
    Format a byte count for display.

    Example:
        format_file_size(0)        # "0 Bytes"
        format_file_size(1536)     # "1.5 KB"
        format_file_size(10485760) # "10 MB"
    """
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    rounded = round(value, 2)
    if rounded == int(rounded):
        rounded = int(rounded)
    return f"{rounded} {units[index]}"


def get_client_ip(request: HttpRequest) -> str:
    """
    Extract client IP from request, handling proxies.

    Checks X-Forwarded-For header for proxy chains.
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # Take the first IP in the chain (original client)
        ip = x_forwarded_for.split(",")[0].strip()
    else:
        ip = request.META.get("REMOTE_ADDR", "")
    return ip
