"""
Path parameter validation for chat endpoints.

Identifiers are checked before any store call so malformed input never
reaches the database.

Usage:
    from chat.validators import parse_business_id, parse_conversation_id

    business_id = parse_business_id(kwargs["business_id"])
    conversation_id = parse_conversation_id(kwargs["conversation_id"])
"""

from __future__ import annotations

import re

from chat.constants import ID_FORMATS
from core.exceptions import NotFoundError, ValidationError
from core.helpers import validate_uuid

_BUSINESS_ID_RE = re.compile(ID_FORMATS.BUSINESS_ID_PATTERN)


def parse_business_id(value: str) -> str:
    """
    Validate a business slug.

    Raises:
        ValidationError: Empty, too long, or outside [a-zA-Z0-9_-].
    """
    if (
        not value
        or len(value) > ID_FORMATS.BUSINESS_ID_MAX_LENGTH
        or not _BUSINESS_ID_RE.fullmatch(value)
    ):
        raise ValidationError(
            "Invalid business ID format",
            details={"businessId": value},
        )
    return value


def parse_conversation_id(value: str | int) -> int:
    """
    Validate a conversation identifier.

    Numeric ids and UUIDs are well-formed. Conversations are keyed by
    integers, so a UUID can never match a row and is reported as not found.

    Raises:
        ValidationError: Neither numeric nor a UUID.
        NotFoundError: A UUID.
    """
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    if validate_uuid(text):
        raise NotFoundError(
            "Conversation not found",
            details={"conversationId": text},
        )
    raise ValidationError(
        "Invalid conversation ID format",
        details={"conversationId": text},
    )


def parse_message_id(value: str | int) -> int:
    text = str(value).strip()
    if not text.isdigit():
        raise ValidationError(
            "Invalid message ID format",
            details={"messageId": text},
        )
    return int(text)
