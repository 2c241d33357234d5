"""
Chat system models.

This module defines the data model for business-to-customer chat:

Models:
    Business: A business account identified by an externally chosen slug
    Conversation: One customer's thread with a business
    Message: A text or attachment message inside a conversation

Design Decisions:
    - Last-message text/time and unread counts are computed from the messages
      table at query time (see chat.store), never stored on the conversation
      row, so they cannot drift from the messages they summarize.
    - Nothing is physically deleted; conversations are archived by status.
    - Message delivery status only moves forward: sent -> delivered -> read.
      ``failed`` can only replace ``sent``.
    - A message carries exactly one of text content or an attachment URL,
      enforced by a check constraint as well as by the store.
"""

from __future__ import annotations

from django.db import models
from django.db.models import Q
from django.utils import timezone

from chat.constants import BUSINESS_CONFIG, ID_FORMATS, MESSAGE_CONFIG
from core.models import BaseModel


class BusinessStatus(models.TextChoices):
    ONLINE = "online", "Online"
    OFFLINE = "offline", "Offline"
    BUSY = "busy", "Busy"
    AWAY = "away", "Away"


class ConversationStatus(models.TextChoices):
    """
    Lifecycle of a customer conversation.

    ACTIVE: Open and awaiting replies
    RESOLVED: The customer's issue was handled
    CLOSED: Ended without resolution
    ARCHIVED: Hidden from day-to-day views but kept
    """

    ACTIVE = "active", "Active"
    RESOLVED = "resolved", "Resolved"
    CLOSED = "closed", "Closed"
    ARCHIVED = "archived", "Archived"


class SenderType(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    BUSINESS = "business", "Business"


class MessageType(models.TextChoices):
    """
    Kind of message content.

    TEXT: Text content, no attachment
    IMAGE: Image attachment (file_url points at an uploaded image)
    FILE: Any other attachment
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    FILE = "file", "File"


class MessageStatus(models.TextChoices):
    SENT = "sent", "Sent"
    DELIVERED = "delivered", "Delivered"
    READ = "read", "Read"
    FAILED = "failed", "Failed"


# Statuses a message may be in for a move to the key status to be allowed
MESSAGE_STATUS_PREDECESSORS: dict[str, tuple[str, ...]] = {
    MessageStatus.SENT: (),
    MessageStatus.DELIVERED: (MessageStatus.SENT,),
    MessageStatus.READ: (MessageStatus.SENT, MessageStatus.DELIVERED),
    MessageStatus.FAILED: (MessageStatus.SENT,),
}


class Business(BaseModel):
    """
    A business that customers chat with.

    The primary key is a slug chosen by the operator (e.g. "tech-store"),
    matching ID_FORMATS.BUSINESS_ID_PATTERN.
    """

    id = models.CharField(
        primary_key=True,
        max_length=ID_FORMATS.BUSINESS_ID_MAX_LENGTH,
        help_text="Externally chosen slug identifying the business",
    )

    name = models.CharField(
        max_length=BUSINESS_CONFIG.MAX_NAME_LENGTH,
        help_text="Display name shown to customers",
    )

    logo_url = models.CharField(
        max_length=BUSINESS_CONFIG.MAX_LOGO_URL_LENGTH,
        blank=True,
        default="",
        help_text="Path or URL of the business logo",
    )

    status = models.CharField(
        max_length=10,
        choices=BusinessStatus.choices,
        default=BusinessStatus.ONLINE,
        help_text="Availability shown to customers",
    )

    class Meta:
        db_table = "businesses"
        ordering = ["name"]
        verbose_name_plural = "businesses"

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class Conversation(BaseModel):
    """
    A customer's conversation with a business.

    Fields:
        business: Owning business
        customer_name: Customer display name
        customer_phone: Customer contact number
        status: Conversation lifecycle state
        updated_at: Bumped on every new message and status change

    Derived values (annotated by chat.store, not columns):
        last_message, last_message_time, last_message_type, unread_count
    """

    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="conversations",
        help_text="Business this conversation belongs to",
    )

    customer_name = models.CharField(
        max_length=100,
        help_text="Customer display name",
    )

    customer_phone = models.CharField(
        max_length=30,
        blank=True,
        default="",
        help_text="Customer contact number",
    )

    status = models.CharField(
        max_length=10,
        choices=ConversationStatus.choices,
        default=ConversationStatus.ACTIVE,
        db_index=True,
        help_text="Lifecycle state of the conversation",
    )

    class Meta:
        db_table = "conversations"
        ordering = ["-updated_at"]
        indexes = [
            models.Index(
                fields=["business", "status"],
                name="conv_business_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Conversation {self.pk} with {self.customer_name}"


class Message(models.Model):
    """
    A single message in a conversation.

    Exactly one of ``content`` and ``file_url`` is set. Attachments point at
    files stored by the media app and served under /uploads/.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.PROTECT,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender_type = models.CharField(
        max_length=10,
        choices=SenderType.choices,
        help_text="Whether the customer or the business sent this message",
    )

    sender_name = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_SENDER_NAME_LENGTH,
        help_text="Sender display name",
    )

    content = models.TextField(
        null=True,
        blank=True,
        help_text="Text content (null for attachment messages)",
    )

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of message content",
    )

    file_url = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_FILE_URL_LENGTH,
        null=True,
        blank=True,
        help_text="URL of the attachment, if any",
    )

    file_name = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_FILE_NAME_LENGTH,
        null=True,
        blank=True,
        help_text="Original filename of the attachment",
    )

    status = models.CharField(
        max_length=10,
        choices=MessageStatus.choices,
        default=MessageStatus.SENT,
        help_text="Delivery status (only moves forward)",
    )

    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the message was sent",
    )

    class Meta:
        db_table = "messages"
        ordering = ["timestamp", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "timestamp"],
                name="msg_conversation_time_idx",
            ),
            models.Index(
                fields=["conversation", "sender_type", "status"],
                name="msg_unread_lookup_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(content__isnull=False, file_url__isnull=True)
                    | Q(content__isnull=True, file_url__isnull=False)
                ),
                name="msg_content_xor_attachment",
            ),
        ]

    def __str__(self) -> str:
        preview = (self.content or self.file_name or "")[:50]
        return f"{self.sender_name}: {preview}"

    @property
    def has_attachment(self) -> bool:
        return bool(self.file_url)

    def can_transition_to(self, status: str) -> bool:
        return self.status in MESSAGE_STATUS_PREDECESSORS.get(status, ())
