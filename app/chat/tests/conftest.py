"""
Test configuration and fixtures for chat tests.

This module provides:
- A business with conversations in known states
- Short typing timeouts for realtime tests

Usage:
    def test_example(api_client, conversation):
        response = api_client.get(f"/api/conversations/{conversation.id}")
        assert response.status_code == 200
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from chat.models import ConversationStatus, MessageStatus, SenderType
from chat.tests.factories import BusinessFactory, ConversationFactory, MessageFactory


# =============================================================================
# Business Fixtures
# =============================================================================


@pytest.fixture
def business(db):
    """The business most tests operate on."""
    return BusinessFactory(id="acme", name="Acme Support")


@pytest.fixture
def other_business(db):
    return BusinessFactory(id="other-shop", name="Other Shop")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def conversation(business):
    """An active conversation with no messages."""
    return ConversationFactory(business=business, customer_name="Alice Brown")


@pytest.fixture
def conversation_with_messages(business):
    """
    An active conversation with three messages, oldest first:

    - customer "Hello" (read)
    - business "Hi, how can I help?" (delivered)
    - customer "My order is late" (sent)
    """
    conversation = ConversationFactory(business=business, customer_name="Bob Green")
    now = timezone.now()
    MessageFactory(
        conversation=conversation,
        content="Hello",
        status=MessageStatus.READ,
        timestamp=now - timedelta(minutes=3),
    )
    MessageFactory(
        conversation=conversation,
        sender_type=SenderType.BUSINESS,
        sender_name="Agent",
        content="Hi, how can I help?",
        status=MessageStatus.DELIVERED,
        timestamp=now - timedelta(minutes=2),
    )
    MessageFactory(
        conversation=conversation,
        content="My order is late",
        timestamp=now - timedelta(minutes=1),
    )
    return conversation


@pytest.fixture
def resolved_conversation(business):
    return ConversationFactory(
        business=business,
        customer_name="Carol White",
        status=ConversationStatus.RESOLVED,
    )


# =============================================================================
# Realtime Fixtures
# =============================================================================


@pytest.fixture
def short_typing_timeout(settings):
    """Make typing indicators expire quickly."""
    settings.CHAT_TYPING_TIMEOUT_SECONDS = 0.1
    return 0.1
