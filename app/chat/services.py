"""
Chat service layer.

Services combine store writes with realtime fan-out. The store call is the
operation; everything after it (room broadcasts, activity bump) is secondary
and best-effort: failures there are logged and never fail the caller.

Services:
    MessageService: Send messages, advance delivery status, mark read
    ConversationService: Start conversations, change their status

Realtime events published here:
    new_message            -> conversation room
    message_status_update  -> conversation room
    conversation_updated   -> business room

Usage:
    from chat.services import MessageService

    message = await MessageService.send_message(draft)

    # From a synchronous DRF view
    message = async_to_sync(MessageService.send_message)(draft)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chat.realtime import Room
from chat.serializers import ConversationSerializer, message_payload
from chat.store import ChatStore
from core.exceptions import DatabaseError, NotFoundError
from core.helpers import iso_timestamp
from core.services import BaseService

if TYPE_CHECKING:
    from typing import Any

    from chat.models import Conversation, Message
    from chat.store import MessageDraft


class RealtimeEvent:
    """Server-to-client event names."""

    CONNECTED = "connected"
    NEW_MESSAGE = "new_message"
    MESSAGE_STATUS_UPDATE = "message_status_update"
    USER_TYPING = "user_typing"
    USER_STOP_TYPING = "user_stop_typing"
    CONVERSATION_UPDATED = "conversation_updated"
    JOINED_BUSINESS = "joined_business"
    JOINED_CONVERSATION = "joined_conversation"
    LEFT_CONVERSATION = "left_conversation"
    ERROR = "error"


class _RealtimeMixin:
    @classmethod
    async def _publish(
        cls,
        room: Room,
        event: str,
        payload: dict[str, Any],
        exclude: str | None = None,
    ) -> bool:
        try:
            await room.publish(event, payload, exclude=exclude)
        except Exception:
            cls.get_logger().exception(f"Failed to publish {event} to {room.name}")
            return False
        return True

    @classmethod
    async def _announce_conversation(cls, conversation_id: int) -> None:
        """Publish the conversation's current summary to its business room."""
        try:
            conversation = await ChatStore.get_conversation_by_id(conversation_id)
        except DatabaseError:
            cls.get_logger().warning(
                f"Could not load conversation {conversation_id} for announcement"
            )
            return
        if conversation is None:
            return
        await cls._publish(
            Room.for_business(conversation.business_id),
            RealtimeEvent.CONVERSATION_UPDATED,
            dict(ConversationSerializer(conversation).data),
        )


class MessageService(_RealtimeMixin, BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Persist, broadcast and record activity
        update_status: Advance delivery status and broadcast the change
        mark_conversation_read: Mark customer messages read
    """

    @classmethod
    async def send_message(cls, draft: MessageDraft) -> Message:
        """
        Send a message into a conversation.

        Steps:
            1. Persist via the store (validation and not-found errors raise)
            2. Publish ``new_message`` to the conversation room
            3. Bump the conversation's activity timestamp
            4. Publish ``conversation_updated`` to the business room

        Steps 2-4 never raise.
        """
        message = await ChatStore.create_message(draft)
        conversation_id = message.conversation_id

        await cls._publish(
            Room.for_conversation(conversation_id),
            RealtimeEvent.NEW_MESSAGE,
            message_payload(message),
        )

        try:
            await ChatStore.touch_conversation(conversation_id)
        except DatabaseError:
            cls.get_logger().warning(
                f"Message {message.pk} saved but conversation {conversation_id} "
                f"activity update failed"
            )

        await cls._announce_conversation(conversation_id)

        cls.get_logger().info(
            f"{message.sender_type} {message.sender_name!r} sent message "
            f"{message.pk} to conversation {conversation_id}"
        )
        return message

    @classmethod
    async def update_status(
        cls,
        message_id: int,
        status: str,
        exclude: str | None = None,
    ) -> tuple[Message, bool]:
        """
        Move a message's delivery status forward.

        Publishes ``message_status_update`` to the conversation room when the
        status changed, skipping the ``exclude`` connection.

        Returns:
            (message, changed)
        """
        changed = await ChatStore.update_message_status(message_id, status)
        message = await ChatStore.get_message(message_id)
        if message is None:
            raise NotFoundError("Message not found", details={"messageId": message_id})

        if changed:
            await cls._publish(
                Room.for_conversation(message.conversation_id),
                RealtimeEvent.MESSAGE_STATUS_UPDATE,
                status_update_payload(message.pk, message.conversation_id, message.status),
                exclude=exclude,
            )
            await cls._announce_conversation(message.conversation_id)
        return message, changed

    @classmethod
    async def mark_conversation_read(cls, conversation_id: int) -> list[int]:
        """
        Mark all customer messages in a conversation as read.

        Returns:
            Ids of the messages that changed.
        """
        if await ChatStore.get_conversation_by_id(conversation_id) is None:
            raise NotFoundError(
                "Conversation not found",
                details={"conversationId": conversation_id},
            )

        message_ids = await ChatStore.mark_conversation_read(conversation_id)
        room = Room.for_conversation(conversation_id)
        for message_id in message_ids:
            await cls._publish(
                room,
                RealtimeEvent.MESSAGE_STATUS_UPDATE,
                status_update_payload(message_id, conversation_id, "read"),
            )
        if message_ids:
            await cls._announce_conversation(conversation_id)
        return message_ids


class ConversationService(_RealtimeMixin, BaseService):
    @classmethod
    async def create_conversation(
        cls,
        business_id: str,
        customer_name: str,
        customer_phone: str = "",
    ) -> Conversation:
        conversation = await ChatStore.create_conversation(
            business_id, customer_name, customer_phone
        )
        await cls._publish(
            Room.for_business(business_id),
            RealtimeEvent.CONVERSATION_UPDATED,
            dict(ConversationSerializer(conversation).data),
        )
        return conversation

    @classmethod
    async def update_status(cls, conversation_id: int, status: str) -> Conversation:
        changed = await ChatStore.update_conversation_status(conversation_id, status)
        if not changed:
            raise NotFoundError(
                "Conversation not found",
                details={"conversationId": conversation_id},
            )
        conversation = await ChatStore.get_conversation_by_id(conversation_id)
        await cls._publish(
            Room.for_business(conversation.business_id),
            RealtimeEvent.CONVERSATION_UPDATED,
            dict(ConversationSerializer(conversation).data),
        )
        cls.get_logger().info(f"Conversation {conversation_id} is now {status}")
        return conversation


def status_update_payload(message_id: int, conversation_id: int, status: str) -> dict:
    return {
        "messageId": message_id,
        "conversationId": conversation_id,
        "status": status,
        "timestamp": iso_timestamp(),
    }
