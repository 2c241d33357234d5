"""
Chat application configuration.

This app provides business-to-customer chat with:
- Businesses, conversations and messages persisted through the async store
- A REST API returning JSON envelopes
- Realtime rooms per business and per conversation over Django Channels
- Typing indicators with automatic expiry
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self) -> None:
        """Connect signal handlers when app is ready."""
        from chat.signals import connect_signals

        connect_signals(self)
