"""
Serializers for the chat API.

Output serializers render models in the API's camelCase JSON shape; input
serializers are the validated request schemas for each endpoint. Views call
``is_valid(raise_exception=True)`` once and hand the typed result to the
store or service layer.

Serializer Hierarchy:
    BusinessSerializer: Business info
    BusinessStatsSerializer: Aggregate counts and derived ratios
    ConversationSerializer: Conversation with last-message and unread fields
    MessageSerializer: Message as sent to REST and socket clients

    BusinessUpdateSerializer: Name / logo update
    BusinessStatusSerializer: Business availability update
    ConversationCreateSerializer: Start a conversation
    ConversationStatusSerializer: Conversation lifecycle update
    ConversationSearchSerializer: ?search= query
    MessageCreateSerializer: Send a message (produces a MessageDraft)
    MessageListQuerySerializer: ?limit=&offset= query
    MessageStatusSerializer: Delivery status update
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import BUSINESS_CONFIG, ID_FORMATS, MESSAGE_CONFIG
from chat.models import (
    Business,
    BusinessStatus,
    Conversation,
    ConversationStatus,
    Message,
    MessageStatus,
    MessageType,
    SenderType,
)
from chat.store import MessageDraft


# =============================================================================
# Output Serializers
# =============================================================================


class BusinessSerializer(serializers.ModelSerializer):
    logoUrl = serializers.CharField(source="logo_url", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Business
        fields = ["id", "name", "logoUrl", "status", "createdAt", "updatedAt"]
        read_only_fields = fields


class BusinessStatsSerializer(serializers.Serializer):
    """Renders chat.store.BusinessStats."""

    totalConversations = serializers.IntegerField(source="total_conversations")
    activeConversations = serializers.IntegerField(source="active_conversations")
    resolvedConversations = serializers.IntegerField(source="resolved_conversations")
    totalMessages = serializers.IntegerField(source="total_messages")
    customerMessages = serializers.IntegerField(source="customer_messages")
    businessMessages = serializers.IntegerField(source="business_messages")
    averageMessagesPerConversation = serializers.FloatField(
        source="average_messages_per_conversation"
    )
    customerEngagementRate = serializers.FloatField(source="customer_engagement_rate")
    businessResponseRate = serializers.FloatField(source="business_response_rate")


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation for list and detail views.

    Expects an instance from chat.store.annotated_conversations(); the
    derived fields fall back to empty values on plain instances.
    """

    businessId = serializers.CharField(source="business_id", read_only=True)
    customerName = serializers.CharField(source="customer_name", read_only=True)
    customerPhone = serializers.CharField(source="customer_phone", read_only=True)
    lastMessage = serializers.SerializerMethodField()
    lastMessageTime = serializers.SerializerMethodField()
    lastMessageType = serializers.SerializerMethodField()
    unreadCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "businessId",
            "customerName",
            "customerPhone",
            "status",
            "lastMessage",
            "lastMessageTime",
            "lastMessageType",
            "unreadCount",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    def get_lastMessage(self, obj: Conversation) -> str | None:
        return getattr(obj, "last_message", None)

    def get_lastMessageTime(self, obj: Conversation) -> str | None:
        value = getattr(obj, "last_message_time", None)
        if value is None:
            return None
        return serializers.DateTimeField().to_representation(value)

    def get_lastMessageType(self, obj: Conversation) -> str | None:
        return getattr(obj, "last_message_type", None)

    def get_unreadCount(self, obj: Conversation) -> int:
        return getattr(obj, "unread_count", 0) or 0


class MessageSerializer(serializers.ModelSerializer):
    conversationId = serializers.IntegerField(source="conversation_id", read_only=True)
    senderType = serializers.CharField(source="sender_type", read_only=True)
    senderName = serializers.CharField(source="sender_name", read_only=True)
    messageType = serializers.CharField(source="message_type", read_only=True)
    fileUrl = serializers.CharField(source="file_url", read_only=True, allow_null=True)
    fileName = serializers.CharField(source="file_name", read_only=True, allow_null=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "conversationId",
            "senderType",
            "senderName",
            "content",
            "messageType",
            "fileUrl",
            "fileName",
            "status",
            "timestamp",
        ]
        read_only_fields = fields


def message_payload(message: Message) -> dict:
    """Plain dict for realtime events and envelopes."""
    return dict(MessageSerializer(message).data)


# =============================================================================
# Business Input Serializers
# =============================================================================


class BusinessUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(
        required=False,
        min_length=BUSINESS_CONFIG.MIN_NAME_LENGTH,
        max_length=BUSINESS_CONFIG.MAX_NAME_LENGTH,
        help_text="Display name (2-100 characters)",
    )
    logoUrl = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=BUSINESS_CONFIG.MAX_LOGO_URL_LENGTH,
        help_text="Path or URL of the logo",
    )

    def validate(self, attrs: dict) -> dict:
        if not attrs:
            raise serializers.ValidationError("Provide at least one of name or logoUrl")
        return attrs


class BusinessStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BusinessStatus.choices)


# =============================================================================
# Conversation Input Serializers
# =============================================================================


class ConversationCreateSerializer(serializers.Serializer):
    businessId = serializers.RegexField(
        ID_FORMATS.BUSINESS_ID_PATTERN,
        max_length=ID_FORMATS.BUSINESS_ID_MAX_LENGTH,
    )
    customerName = serializers.CharField(min_length=2, max_length=100)
    customerPhone = serializers.RegexField(
        ID_FORMATS.PHONE_PATTERN,
        required=False,
        allow_blank=True,
        default="",
    )


class ConversationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ConversationStatus.choices)


class ConversationSearchSerializer(serializers.Serializer):
    search = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=100,
        default="",
        help_text="Case-insensitive customer name filter",
    )


# =============================================================================
# Message Input Serializers
# =============================================================================


class MessageCreateSerializer(serializers.Serializer):
    """
    Body of POST /conversations/:id/messages.

    ``senderName`` falls back to ``senderId``. Exactly one of ``content`` and
    ``fileUrl`` must be present.
    """

    senderType = serializers.ChoiceField(choices=SenderType.choices)
    senderName = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=MESSAGE_CONFIG.MAX_SENDER_NAME_LENGTH,
    )
    senderId = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=MESSAGE_CONFIG.MAX_SENDER_NAME_LENGTH,
    )
    content = serializers.CharField(
        required=False,
        allow_null=True,
        allow_blank=True,
        trim_whitespace=False,
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
    )
    messageType = serializers.ChoiceField(choices=MessageType.choices, required=False)
    fileUrl = serializers.CharField(
        required=False,
        allow_null=True,
        allow_blank=True,
        max_length=MESSAGE_CONFIG.MAX_FILE_URL_LENGTH,
    )
    fileName = serializers.CharField(
        required=False,
        allow_null=True,
        allow_blank=True,
        max_length=MESSAGE_CONFIG.MAX_FILE_NAME_LENGTH,
    )

    def validate(self, attrs: dict) -> dict:
        sender_name = (attrs.get("senderName") or attrs.get("senderId") or "").strip()
        if not sender_name:
            raise serializers.ValidationError(
                {"senderName": ["senderName or senderId is required."]}
            )
        attrs["senderName"] = sender_name

        content = attrs.get("content")
        has_content = bool(content and content.strip())
        has_file = bool((attrs.get("fileUrl") or "").strip())
        if not has_content and not has_file:
            raise serializers.ValidationError(
                "Message must have either content or a file attachment"
            )
        if has_content and has_file:
            raise serializers.ValidationError(
                "Message must have either content or a file attachment, not both"
            )

        message_type = attrs.get("messageType")
        if message_type == MessageType.TEXT and not has_content:
            raise serializers.ValidationError({"messageType": ["Text messages require content."]})
        if message_type in (MessageType.IMAGE, MessageType.FILE) and not has_file:
            raise serializers.ValidationError(
                {"messageType": [f"{message_type.capitalize()} messages require a fileUrl."]}
            )
        return attrs

    def to_draft(self, conversation_id: int) -> MessageDraft:
        data = self.validated_data
        return MessageDraft(
            conversation_id=conversation_id,
            sender_type=data["senderType"],
            sender_name=data["senderName"],
            content=data.get("content"),
            message_type=data.get("messageType"),
            file_url=data.get("fileUrl") or None,
            file_name=data.get("fileName") or None,
        )


class MessageListQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(
        required=False,
        default=MESSAGE_CONFIG.DEFAULT_PAGE_SIZE,
        min_value=MESSAGE_CONFIG.MIN_PAGE_SIZE,
        max_value=MESSAGE_CONFIG.MAX_PAGE_SIZE,
    )
    offset = serializers.IntegerField(required=False, default=0, min_value=0)


class MessageStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=[
            (MessageStatus.DELIVERED, "Delivered"),
            (MessageStatus.READ, "Read"),
            (MessageStatus.FAILED, "Failed"),
        ]
    )
