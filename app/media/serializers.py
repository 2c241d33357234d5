"""
Serializers for the upload API.

UploadSerializer validates the multipart form. The file itself goes through
media.validators.UploadValidator; the optional message fields must be given
together so that an upload either creates a message or does not.
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG
from chat.models import SenderType


class UploadSerializer(serializers.Serializer):
    file = serializers.FileField(allow_empty_file=True, use_url=False)
    conversationId = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text="Attach the upload to this conversation as an image/file message",
    )
    senderType = serializers.ChoiceField(choices=SenderType.choices, required=False)
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

    def validate(self, attrs: dict) -> dict:
        conversation_id = (attrs.get("conversationId") or "").strip()
        attrs["conversationId"] = conversation_id or None
        if not conversation_id:
            return attrs

        errors = {}
        if not attrs.get("senderType"):
            errors["senderType"] = ["senderType is required with conversationId."]
        sender_name = (attrs.get("senderName") or attrs.get("senderId") or "").strip()
        if not sender_name:
            errors["senderName"] = ["senderName or senderId is required with conversationId."]
        if errors:
            raise serializers.ValidationError(errors)
        attrs["senderName"] = sender_name
        return attrs
