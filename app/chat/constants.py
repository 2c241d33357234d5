"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message content limits and listing pagination
- Identifier formats accepted by the REST API
- Realtime room naming and typing indicators
- The demo seed gated by the sentinel business

Tunable values read Django settings at call time so tests can override them.
Import example:
    from chat.constants import MESSAGE_CONFIG, REALTIME_CONFIG
"""

from typing import Final

from django.conf import settings


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 1000  # Characters
    MAX_FILE_NAME_LENGTH: Final[int] = 255
    MAX_FILE_URL_LENGTH: Final[int] = 500
    MAX_SENDER_NAME_LENGTH: Final[int] = 100

    # History listing
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MIN_PAGE_SIZE: Final[int] = 1
    MAX_PAGE_SIZE: Final[int] = 100


# =============================================================================
# Identifier Formats
# =============================================================================


class ID_FORMATS:
    """Path parameter formats checked before touching the store."""

    BUSINESS_ID_PATTERN: Final[str] = r"^[a-zA-Z0-9_-]+$"
    BUSINESS_ID_MAX_LENGTH: Final[int] = 100
    PHONE_PATTERN: Final[str] = r"^\+?[0-9\s\-()]{7,20}$"


# =============================================================================
# Business Configuration
# =============================================================================


class BUSINESS_CONFIG:
    MIN_NAME_LENGTH: Final[int] = 2
    MAX_NAME_LENGTH: Final[int] = 100
    MAX_LOGO_URL_LENGTH: Final[int] = 500


# =============================================================================
# Realtime Configuration
# =============================================================================


class REALTIME_CONFIG:
    """Room naming and typing indicator settings."""

    BUSINESS_ROOM_PREFIX: Final[str] = "business_"
    CONVERSATION_ROOM_PREFIX: Final[str] = "conversation_"

    # Channel layer message type routed to ChatConsumer.room_event
    ROOM_EVENT_TYPE: Final[str] = "room.event"

    DEFAULT_TYPING_TIMEOUT_SECONDS: Final[float] = 3.0


def typing_timeout_seconds() -> float:
    return float(
        getattr(
            settings,
            "CHAT_TYPING_TIMEOUT_SECONDS",
            REALTIME_CONFIG.DEFAULT_TYPING_TIMEOUT_SECONDS,
        )
    )


# =============================================================================
# Demo Seed
# =============================================================================


class SEED_CONFIG:
    """Demo data created after migrate when the sentinel business is absent."""

    SENTINEL_BUSINESS_ID: Final[str] = "tech-store"
    BUSINESS_NAME: Final[str] = "Tech Store Support"
    BUSINESS_LOGO_URL: Final[str] = "/logo.png"

    # (customer_name, customer_phone, status, opening message, minutes ago, message status)
    CONVERSATIONS: Final[tuple] = (
        ("John Doe", "+1234567890", "active", "Hi, my laptop is not charging properly", 5, "sent"),
        ("Sarah Johnson", "+1234567891", "active", "I need help with my order #12345", 30, "sent"),
        ("Mike Chen", "+1234567892", "active", "My gaming mouse stopped working", 60, "read"),
        ("Emma Wilson", "+1234567893", "resolved", "Thank you for the help!", 120, "read"),
        ("David Smith", "+1234567894", "active", "Keyboard keys are sticking", 180, "delivered"),
    )


def seed_demo_data_enabled() -> bool:
    return bool(getattr(settings, "CHAT_SEED_DEMO_DATA", True))
