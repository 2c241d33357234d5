"""
Async persistence layer for businesses, conversations and messages.

ChatStore is the only code that queries the chat tables. Every operation is a
coroutine built on Django's async ORM API, so socket consumers and services
can await it without blocking the event loop.

Storage-engine failures (``django.db.DatabaseError`` and subclasses) are
logged with full context and re-raised as ``core.exceptions.DatabaseError``,
which renders as a generic 500 envelope with no driver details.

Conversation listings are annotated with values computed from the messages
table:
    last_message       Text of the newest message (or its attachment name)
    last_message_time  Timestamp of the newest message
    last_message_type  Kind of the newest message
    last_activity      last_message_time, or created_at for empty threads
    unread_count       Customer messages whose status is not "read"

Usage:
    from chat.store import ChatStore, MessageDraft

    conversations = await ChatStore.get_conversations("tech-store")
    message = await ChatStore.create_message(
        MessageDraft(conversation_id=1, sender_type="business",
                     sender_name="Agent", content="hello")
    )
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import DatabaseError as DjangoDatabaseError
from django.db.models import (
    Count,
    F,
    IntegerField,
    OuterRef,
    Q,
    Subquery,
    TextField,
    Value,
)
from django.db.models.functions import Coalesce
from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from chat.models import (
    MESSAGE_STATUS_PREDECESSORS,
    Business,
    BusinessStatus,
    Conversation,
    ConversationStatus,
    Message,
    MessageStatus,
    MessageType,
    SenderType,
)
from core.exceptions import DatabaseError, NotFoundError, ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from collections.abc import Generator

    from django.db.models import QuerySet


# =============================================================================
# Store Types
# =============================================================================


@dataclass(frozen=True)
class MessageDraft:
    """Validated input for ChatStore.create_message."""

    conversation_id: int
    sender_type: str
    sender_name: str
    content: str | None = None
    message_type: str | None = None
    file_url: str | None = None
    file_name: str | None = None


@dataclass(frozen=True)
class BusinessStats:
    """Aggregate counts for one business plus derived ratios."""

    total_conversations: int = 0
    active_conversations: int = 0
    resolved_conversations: int = 0
    total_messages: int = 0
    customer_messages: int = 0
    business_messages: int = 0

    @property
    def average_messages_per_conversation(self) -> float:
        if not self.total_conversations:
            return 0
        return round(self.total_messages / self.total_conversations, 2)

    @property
    def customer_engagement_rate(self) -> float:
        if not self.total_messages:
            return 0
        return round(self.customer_messages / self.total_messages * 100, 2)

    @property
    def business_response_rate(self) -> float:
        if not self.total_messages:
            return 0
        return round(self.business_messages / self.total_messages * 100, 2)


# =============================================================================
# Query Helpers
# =============================================================================


def _latest_messages() -> QuerySet:
    return Message.objects.filter(conversation=OuterRef("pk")).order_by(
        "-timestamp", "-id"
    )


def annotated_conversations() -> QuerySet:
    """Conversation queryset with last-message and unread annotations."""
    latest = _latest_messages()
    unread = (
        Message.objects.filter(
            conversation=OuterRef("pk"),
            sender_type=SenderType.CUSTOMER,
        )
        .exclude(status=MessageStatus.READ)
        .order_by()
        .values("conversation")
        .annotate(total=Count("id"))
        .values("total")
    )
    return Conversation.objects.annotate(
        last_message=Subquery(
            latest.annotate(
                preview=Coalesce("content", "file_name", output_field=TextField())
            ).values("preview")[:1]
        ),
        last_message_time=Subquery(latest.values("timestamp")[:1]),
        last_message_type=Subquery(latest.values("message_type")[:1]),
        last_activity=Coalesce(
            Subquery(latest.values("timestamp")[:1]),
            F("created_at"),
        ),
        unread_count=Coalesce(
            Subquery(unread, output_field=IntegerField()),
            Value(0),
        ),
    )


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


# =============================================================================
# Store
# =============================================================================


class ChatStore(BaseService):
    """
    Persistence operations for the chat domain.

    All methods are async classmethods. Reads return model instances (or
    None when absent); writes that target a single row return whether a row
    changed.
    """

    @classmethod
    @contextmanager
    def _storage_errors(cls, operation: str) -> Generator[None, None, None]:
        try:
            yield
        except DjangoDatabaseError as exc:
            cls.get_logger().exception(f"Database error during {operation}")
            raise DatabaseError(details={"operation": operation}) from exc

    # -------------------------------------------------------------------------
    # Businesses
    # -------------------------------------------------------------------------

    @classmethod
    async def get_business(cls, business_id: str) -> Business | None:
        with cls._storage_errors("get business"):
            return await Business.objects.filter(pk=business_id).afirst()

    @classmethod
    async def update_business_status(cls, business_id: str, status: str) -> bool:
        if status not in BusinessStatus.values:
            raise ValidationError(
                "Invalid business status",
                details={"status": status, "allowed": BusinessStatus.values},
            )
        with cls._storage_errors("update business status"):
            updated = await Business.objects.filter(pk=business_id).aupdate(
                status=status,
                updated_at=timezone.now(),
            )
        return updated > 0

    @classmethod
    async def update_business_info(
        cls,
        business_id: str,
        name: str | None = None,
        logo_url: str | None = None,
    ) -> bool:
        fields: dict[str, object] = {}
        if name is not None:
            fields["name"] = name
        if logo_url is not None:
            fields["logo_url"] = logo_url
        if not fields:
            raise ValidationError("No fields provided to update")

        with cls._storage_errors("update business info"):
            updated = await Business.objects.filter(pk=business_id).aupdate(
                updated_at=timezone.now(),
                **fields,
            )
        return updated > 0

    @classmethod
    async def get_business_stats(cls, business_id: str) -> BusinessStats:
        with cls._storage_errors("get business stats"):
            conversations = await Conversation.objects.filter(
                business_id=business_id
            ).aaggregate(
                total=Count("id"),
                active=Count("id", filter=Q(status=ConversationStatus.ACTIVE)),
                resolved=Count("id", filter=Q(status=ConversationStatus.RESOLVED)),
            )
            messages = await Message.objects.filter(
                conversation__business_id=business_id
            ).aaggregate(
                total=Count("id"),
                customer=Count("id", filter=Q(sender_type=SenderType.CUSTOMER)),
                business=Count("id", filter=Q(sender_type=SenderType.BUSINESS)),
            )

        return BusinessStats(
            total_conversations=conversations["total"] or 0,
            active_conversations=conversations["active"] or 0,
            resolved_conversations=conversations["resolved"] or 0,
            total_messages=messages["total"] or 0,
            customer_messages=messages["customer"] or 0,
            business_messages=messages["business"] or 0,
        )

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    @classmethod
    async def get_conversations(cls, business_id: str) -> list[Conversation]:
        """Conversations for a business, most recent activity first."""
        queryset = annotated_conversations().filter(business_id=business_id)
        with cls._storage_errors("list conversations"):
            return [
                conversation
                async for conversation in queryset.order_by("-last_activity", "-id")
            ]

    @classmethod
    async def search_conversations(
        cls,
        business_id: str,
        term: str,
    ) -> list[Conversation]:
        """Case-insensitive customer-name substring filter over get_conversations."""
        term = (term or "").strip()
        if not term:
            return await cls.get_conversations(business_id)

        queryset = annotated_conversations().filter(
            business_id=business_id,
            customer_name__icontains=term,
        )
        with cls._storage_errors("search conversations"):
            return [
                conversation
                async for conversation in queryset.order_by("-last_activity", "-id")
            ]

    @classmethod
    async def get_conversation_by_id(cls, conversation_id: int) -> Conversation | None:
        with cls._storage_errors("get conversation"):
            return await annotated_conversations().filter(pk=conversation_id).afirst()

    @classmethod
    async def create_conversation(
        cls,
        business_id: str,
        customer_name: str,
        customer_phone: str = "",
    ) -> Conversation:
        if _is_blank(customer_name):
            raise ValidationError(
                "Customer name is required",
                details={"customerName": ["This field is required."]},
            )
        if await cls.get_business(business_id) is None:
            raise NotFoundError(
                "Business not found",
                details={"businessId": business_id},
            )

        with cls._storage_errors("create conversation"):
            conversation = await Conversation.objects.acreate(
                business_id=business_id,
                customer_name=customer_name.strip(),
                customer_phone=(customer_phone or "").strip(),
            )
        cls.get_logger().info(
            f"Created conversation {conversation.pk} for business {business_id}"
        )
        return await cls.get_conversation_by_id(conversation.pk)

    @classmethod
    async def update_conversation_status(cls, conversation_id: int, status: str) -> bool:
        if status not in ConversationStatus.values:
            raise ValidationError(
                "Invalid conversation status",
                details={"status": status, "allowed": ConversationStatus.values},
            )
        with cls._storage_errors("update conversation status"):
            updated = await Conversation.objects.filter(pk=conversation_id).aupdate(
                status=status,
                updated_at=timezone.now(),
            )
        return updated > 0

    @classmethod
    async def touch_conversation(cls, conversation_id: int) -> bool:
        """Record activity on a conversation (bumps updated_at)."""
        with cls._storage_errors("touch conversation"):
            updated = await Conversation.objects.filter(pk=conversation_id).aupdate(
                updated_at=timezone.now(),
            )
        return updated > 0

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    @classmethod
    async def get_messages(
        cls,
        conversation_id: int,
        limit: int = MESSAGE_CONFIG.DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[Message]:
        """
        The most recent ``limit`` messages, returned oldest first.

        ``offset`` skips that many of the newest messages, paging backwards
        through history.
        """
        queryset = Message.objects.filter(conversation_id=conversation_id).order_by(
            "-timestamp", "-id"
        )[offset : offset + limit]
        with cls._storage_errors("list messages"):
            newest_first = [message async for message in queryset]
        newest_first.reverse()
        return newest_first

    @classmethod
    async def count_messages(cls, conversation_id: int) -> int:
        with cls._storage_errors("count messages"):
            return await Message.objects.filter(conversation_id=conversation_id).acount()

    @classmethod
    async def get_message(cls, message_id: int) -> Message | None:
        with cls._storage_errors("get message"):
            return await Message.objects.filter(pk=message_id).afirst()

    @classmethod
    def _validate_draft(cls, draft: MessageDraft) -> str:
        """Check a draft and return the message type it should be stored with."""
        errors: dict[str, list[str]] = {}
        if not draft.conversation_id:
            errors["conversationId"] = ["This field is required."]
        if _is_blank(draft.sender_type):
            errors["senderType"] = ["This field is required."]
        elif draft.sender_type not in SenderType.values:
            errors["senderType"] = [f"Must be one of: {', '.join(SenderType.values)}."]
        if _is_blank(draft.sender_name):
            errors["senderName"] = ["This field is required."]
        if errors:
            raise ValidationError("Missing required fields", details=errors)

        has_content = not _is_blank(draft.content)
        has_file = not _is_blank(draft.file_url)
        if not has_content and not has_file:
            raise ValidationError(
                "Message must have either content or a file attachment"
            )
        if has_content and has_file:
            raise ValidationError(
                "Message must have either content or a file attachment, not both"
            )
        if has_content and len(draft.content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            raise ValidationError(
                f"Message content must be at most "
                f"{MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                details={"content": ["Too long."]},
            )

        message_type = draft.message_type or (
            MessageType.TEXT if has_content else MessageType.FILE
        )
        if message_type not in MessageType.values:
            raise ValidationError(
                "Invalid message type",
                details={"messageType": message_type, "allowed": MessageType.values},
            )
        if message_type == MessageType.TEXT and not has_content:
            raise ValidationError("Text messages require content")
        if message_type != MessageType.TEXT and not has_file:
            raise ValidationError(f"{message_type.capitalize()} messages require a fileUrl")
        return message_type

    @classmethod
    async def create_message(cls, draft: MessageDraft) -> Message:
        """
        Persist a new message.

        Raises:
            ValidationError: Missing conversation/sender fields, neither or
                both of content and attachment, or values outside the enums.
            NotFoundError: The conversation does not exist.
        """
        message_type = cls._validate_draft(draft)

        with cls._storage_errors("create message"):
            exists = await Conversation.objects.filter(pk=draft.conversation_id).aexists()
            if not exists:
                raise NotFoundError(
                    "Conversation not found",
                    details={"conversationId": draft.conversation_id},
                )
            has_content = not _is_blank(draft.content)
            message = await Message.objects.acreate(
                conversation_id=draft.conversation_id,
                sender_type=draft.sender_type,
                sender_name=draft.sender_name.strip(),
                content=draft.content if has_content else None,
                message_type=message_type,
                file_url=None if has_content else draft.file_url,
                file_name=None if has_content else (draft.file_name or None),
                status=MessageStatus.SENT,
            )

        cls.get_logger().debug(
            f"Created message {message.pk} in conversation {draft.conversation_id}"
        )
        return message

    @classmethod
    async def update_message_status(cls, message_id: int, status: str) -> bool:
        """
        Move a message's status forward.

        Backward or repeated transitions change nothing and return False.

        Raises:
            ValidationError: Unknown status value.
            NotFoundError: The message does not exist.
        """
        if status not in MessageStatus.values:
            raise ValidationError(
                "Invalid message status",
                details={"status": status, "allowed": MessageStatus.values},
            )

        predecessors = MESSAGE_STATUS_PREDECESSORS[status]
        with cls._storage_errors("update message status"):
            updated = await Message.objects.filter(
                pk=message_id,
                status__in=predecessors,
            ).aupdate(status=status)
            if updated:
                return True
            exists = await Message.objects.filter(pk=message_id).aexists()

        if not exists:
            raise NotFoundError("Message not found", details={"messageId": message_id})
        return False

    @classmethod
    async def mark_conversation_read(cls, conversation_id: int) -> list[int]:
        """
        Mark every readable customer message in a conversation as read.

        Returns:
            Ids of the messages whose status changed.
        """
        pending = Message.objects.filter(
            conversation_id=conversation_id,
            sender_type=SenderType.CUSTOMER,
            status__in=MESSAGE_STATUS_PREDECESSORS[MessageStatus.READ],
        )
        with cls._storage_errors("mark conversation read"):
            message_ids = [pk async for pk in pending.values_list("id", flat=True)]
            if message_ids:
                await Message.objects.filter(
                    pk__in=message_ids,
                    status__in=MESSAGE_STATUS_PREDECESSORS[MessageStatus.READ],
                ).aupdate(status=MessageStatus.READ)
        return message_ids
