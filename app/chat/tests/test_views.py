"""
Tests for chat API views.

Covers:
- Envelope shape for success and failure
- Conversation listing, search, creation and status changes
- Message history pagination and sending
- Delivery status updates and read receipts
- Business info, status, stats and profile
"""

from unittest.mock import patch

import pytest

from chat.models import Business, Conversation, Message, MessageStatus
from chat.realtime import Room
from chat.services import RealtimeEvent
from chat.tests.factories import ConversationFactory, MessageFactory
from chat.tests.helpers import published_events


def _assert_success(response, status_code=200):
    assert response.status_code == status_code, response.json()
    body = response.json()
    assert body["success"] is True
    assert body["statusCode"] == status_code
    assert body["timestamp"]
    assert body["requestId"] == response["X-Request-ID"]
    return body["data"]


def _assert_error(response, status_code, error):
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["statusCode"] == status_code
    assert body["error"] == error
    assert body["message"]
    return body


# =============================================================================
# Conversations
# =============================================================================


class TestBusinessConversationList:
    def test_orders_by_latest_activity(
        self, api_client, business, conversation, conversation_with_messages
    ):
        """A conversation without messages ranks by its creation time."""
        response = api_client.get(f"/api/conversations/business/{business.id}")

        data = _assert_success(response)
        # Last message was a minute ago; the empty conversation was created just now
        assert [c["id"] for c in data] == [conversation.id, conversation_with_messages.id]
        assert data[1]["lastMessage"] == "My order is late"
        assert data[1]["unreadCount"] == 1
        assert data[0]["lastMessage"] is None

    def test_excludes_other_businesses(self, api_client, business, other_business, conversation):
        ConversationFactory(business=other_business)

        response = api_client.get(f"/api/conversations/business/{business.id}")

        assert [c["id"] for c in _assert_success(response)] == [conversation.id]

    def test_search_filters_by_customer_name(self, api_client, business):
        ConversationFactory(business=business, customer_name="Sarah Johnson")
        ConversationFactory(business=business, customer_name="Mike Chen")

        response = api_client.get(
            f"/api/conversations/business/{business.id}", {"search": "sarah"}
        )

        assert [c["customerName"] for c in _assert_success(response)] == ["Sarah Johnson"]

    def test_unknown_business_is_not_found(self, api_client, db):
        response = api_client.get("/api/conversations/business/nobody")

        _assert_error(response, 404, "NOT_FOUND")

    def test_malformed_business_id_is_rejected(self, api_client, db):
        response = api_client.get("/api/conversations/business/bad%20id")

        _assert_error(response, 400, "VALIDATION_ERROR")


class TestConversationCreate:
    def test_creates_conversation(self, api_client, business):
        with patch.object(Room, "publish", autospec=True) as publish:
            response = api_client.post(
                "/api/conversations",
                {"businessId": business.id, "customerName": "Dana Scully"},
                format="json",
            )

        data = _assert_success(response, 201)
        assert response.json()["message"] == "Resource created successfully"
        assert data["customerName"] == "Dana Scully"
        assert data["status"] == "active"
        assert Conversation.objects.filter(pk=data["id"]).exists()
        events = published_events(publish)
        assert [(room, event) for room, event, _, _ in events] == [
            (f"business_{business.id}", RealtimeEvent.CONVERSATION_UPDATED)
        ]

    def test_unknown_business_is_not_found(self, api_client, db):
        response = api_client.post(
            "/api/conversations",
            {"businessId": "ghost", "customerName": "Dana Scully"},
            format="json",
        )

        _assert_error(response, 404, "NOT_FOUND")

    def test_missing_name_is_rejected(self, api_client, business):
        response = api_client.post(
            "/api/conversations", {"businessId": business.id}, format="json"
        )

        body = _assert_error(response, 400, "VALIDATION_ERROR")
        assert "customerName" in body["details"]


class TestConversationDetail:
    def test_returns_conversation(self, api_client, conversation_with_messages):
        response = api_client.get(f"/api/conversations/{conversation_with_messages.id}")

        data = _assert_success(response)
        assert data["id"] == conversation_with_messages.id
        assert data["businessId"] == "acme"

    def test_missing_conversation(self, api_client, db):
        _assert_error(api_client.get("/api/conversations/999"), 404, "NOT_FOUND")

    def test_uuid_is_not_found(self, api_client, db):
        response = api_client.get("/api/conversations/550e8400-e29b-41d4-a716-446655440000")

        _assert_error(response, 404, "NOT_FOUND")

    def test_garbage_id_is_rejected(self, api_client, db):
        _assert_error(api_client.get("/api/conversations/abc"), 400, "VALIDATION_ERROR")


class TestConversationStatus:
    def test_resolves_conversation(self, api_client, conversation):
        response = api_client.patch(
            f"/api/conversations/{conversation.id}/status",
            {"status": "resolved"},
            format="json",
        )

        assert _assert_success(response)["status"] == "resolved"
        conversation.refresh_from_db()
        assert conversation.status == "resolved"

    def test_accepts_archived(self, api_client, conversation):
        response = api_client.patch(
            f"/api/conversations/{conversation.id}/status",
            {"status": "archived"},
            format="json",
        )

        assert _assert_success(response)["status"] == "archived"

    def test_rejects_unknown_status(self, api_client, conversation):
        response = api_client.patch(
            f"/api/conversations/{conversation.id}/status",
            {"status": "deleted"},
            format="json",
        )

        _assert_error(response, 400, "VALIDATION_ERROR")

    def test_missing_conversation(self, api_client, db):
        response = api_client.patch(
            "/api/conversations/404/status", {"status": "resolved"}, format="json"
        )

        _assert_error(response, 404, "NOT_FOUND")


# =============================================================================
# Messages
# =============================================================================


class TestMessageHistory:
    def test_returns_messages_oldest_first_with_pagination(
        self, api_client, conversation_with_messages
    ):
        response = api_client.get(f"/api/conversations/{conversation_with_messages.id}/messages")

        data = _assert_success(response)
        assert [m["content"] for m in data["messages"]] == [
            "Hello",
            "Hi, how can I help?",
            "My order is late",
        ]
        assert data["conversation"]["id"] == conversation_with_messages.id
        assert data["pagination"] == {"limit": 50, "offset": 0, "total": 3}

    def test_limit_and_offset_page_backwards(self, api_client, conversation_with_messages):
        response = api_client.get(
            f"/api/conversations/{conversation_with_messages.id}/messages",
            {"limit": 1, "offset": 1},
        )

        data = _assert_success(response)
        assert [m["content"] for m in data["messages"]] == ["Hi, how can I help?"]
        assert data["pagination"] == {"limit": 1, "offset": 1, "total": 3}

    def test_rejects_out_of_range_limit(self, api_client, conversation):
        response = api_client.get(
            f"/api/conversations/{conversation.id}/messages", {"limit": 500}
        )

        _assert_error(response, 400, "VALIDATION_ERROR")

    def test_missing_conversation(self, api_client, db):
        _assert_error(api_client.get("/api/conversations/77/messages"), 404, "NOT_FOUND")


class TestSendMessage:
    def test_sends_and_broadcasts(self, api_client, conversation):
        with patch.object(Room, "publish", autospec=True) as publish:
            response = api_client.post(
                f"/api/conversations/{conversation.id}/messages",
                {"senderType": "customer", "senderName": "Alice Brown", "content": "Hi!"},
                format="json",
            )

        data = _assert_success(response, 201)
        assert response.json()["message"] == "Message sent successfully"
        assert data["content"] == "Hi!"
        assert data["messageType"] == "text"
        assert data["status"] == "sent"
        assert Message.objects.filter(conversation=conversation).count() == 1

        new_message = [e for e in published_events(publish) if e[1] == RealtimeEvent.NEW_MESSAGE]
        assert len(new_message) == 1
        assert new_message[0][0] == f"conversation_{conversation.id}"
        assert new_message[0][2]["id"] == data["id"]

    def test_sends_attachment_message(self, api_client, conversation):
        response = api_client.post(
            f"/api/conversations/{conversation.id}/messages",
            {
                "senderType": "business",
                "senderName": "Agent",
                "messageType": "file",
                "fileUrl": "/uploads/1700000000000_abcdef.pdf",
                "fileName": "manual.pdf",
            },
            format="json",
        )

        data = _assert_success(response, 201)
        assert data["content"] is None
        assert data["fileName"] == "manual.pdf"

    def test_rejects_empty_message(self, api_client, conversation):
        response = api_client.post(
            f"/api/conversations/{conversation.id}/messages",
            {"senderType": "customer", "senderName": "Alice Brown"},
            format="json",
        )

        _assert_error(response, 400, "VALIDATION_ERROR")
        assert not Message.objects.exists()

    def test_missing_conversation(self, api_client, db):
        response = api_client.post(
            "/api/conversations/12345/messages",
            {"senderType": "customer", "senderName": "Alice", "content": "Hi"},
            format="json",
        )

        _assert_error(response, 404, "NOT_FOUND")


class TestMessageStatus:
    def test_advances_status(self, api_client, conversation):
        message = MessageFactory(conversation=conversation)

        response = api_client.patch(
            f"/api/messages/{message.id}/status", {"status": "delivered"}, format="json"
        )

        data = _assert_success(response)
        assert data["status"] == "delivered"
        assert data["changed"] is True

    def test_backward_update_is_a_no_op(self, api_client, conversation):
        message = MessageFactory(conversation=conversation, status=MessageStatus.READ)

        response = api_client.patch(
            f"/api/messages/{message.id}/status", {"status": "delivered"}, format="json"
        )

        data = _assert_success(response)
        assert data["status"] == "read"
        assert data["changed"] is False

    def test_missing_message(self, api_client, db):
        response = api_client.patch(
            "/api/messages/31337/status", {"status": "read"}, format="json"
        )

        _assert_error(response, 404, "NOT_FOUND")


class TestMarkConversationRead:
    def test_marks_customer_messages_read(self, api_client, conversation_with_messages):
        unread = Message.objects.get(content="My order is late")

        response = api_client.post(f"/api/conversations/{conversation_with_messages.id}/read")

        data = _assert_success(response)
        assert data == {
            "conversationId": conversation_with_messages.id,
            "messageIds": [unread.id],
        }
        unread.refresh_from_db()
        assert unread.status == MessageStatus.READ
        # Business replies keep their own status
        assert Message.objects.get(sender_name="Agent").status == MessageStatus.DELIVERED


# =============================================================================
# Business
# =============================================================================


class TestBusinessDetail:
    def test_returns_business(self, api_client, business):
        data = _assert_success(api_client.get(f"/api/business/{business.id}"))

        assert data["id"] == "acme"
        assert data["name"] == "Acme Support"
        assert data["logoUrl"] == "/logo.png"
        assert data["status"] == "online"

    def test_missing_business(self, api_client, db):
        _assert_error(api_client.get("/api/business/ghost"), 404, "NOT_FOUND")

    def test_updates_name(self, api_client, business):
        response = api_client.patch(
            f"/api/business/{business.id}", {"name": "Acme Help Desk"}, format="json"
        )

        assert _assert_success(response)["name"] == "Acme Help Desk"
        assert Business.objects.get(pk=business.id).name == "Acme Help Desk"

    def test_update_requires_a_field(self, api_client, business):
        response = api_client.patch(f"/api/business/{business.id}", {}, format="json")

        _assert_error(response, 400, "VALIDATION_ERROR")

    def test_update_missing_business(self, api_client, db):
        response = api_client.patch("/api/business/ghost", {"name": "Ghost"}, format="json")

        _assert_error(response, 404, "NOT_FOUND")


class TestBusinessStatus:
    def test_updates_status(self, api_client, business):
        response = api_client.patch(
            f"/api/business/{business.id}/status", {"status": "busy"}, format="json"
        )

        assert _assert_success(response) == {"businessId": business.id, "status": "busy"}
        assert Business.objects.get(pk=business.id).status == "busy"

    def test_accepts_away(self, api_client, business):
        response = api_client.patch(
            f"/api/business/{business.id}/status", {"status": "away"}, format="json"
        )

        assert _assert_success(response)["status"] == "away"

    @pytest.mark.parametrize("value", ["invisible", ""])
    def test_rejects_unknown_status(self, api_client, business, value):
        response = api_client.patch(
            f"/api/business/{business.id}/status", {"status": value}, format="json"
        )

        _assert_error(response, 400, "VALIDATION_ERROR")


class TestBusinessStatsAndProfile:
    def test_stats(self, api_client, conversation_with_messages, resolved_conversation):
        data = _assert_success(api_client.get("/api/business/acme/stats"))

        assert data["totalConversations"] == 2
        assert data["activeConversations"] == 1
        assert data["resolvedConversations"] == 1
        assert data["totalMessages"] == 3
        assert data["customerMessages"] == 2
        assert data["businessMessages"] == 1
        assert data["averageMessagesPerConversation"] == 1.5

    def test_stats_for_empty_business(self, api_client, business):
        data = _assert_success(api_client.get(f"/api/business/{business.id}/stats"))

        assert data["totalMessages"] == 0
        assert data["averageMessagesPerConversation"] == 0
        assert data["customerEngagementRate"] == 0

    def test_profile_combines_business_and_stats(self, api_client, conversation_with_messages):
        data = _assert_success(api_client.get("/api/business/acme/profile"))

        assert data["name"] == "Acme Support"
        assert data["stats"]["totalMessages"] == 3

    def test_stats_for_missing_business(self, api_client, db):
        _assert_error(api_client.get("/api/business/ghost/stats"), 404, "NOT_FOUND")
