"""
WebSocket consumer for the chat application.

One socket per browser tab. The socket joins rooms on request and relays
typing indicators and delivery receipts between the members of a
conversation room. Messages themselves are sent over REST; the API publishes
them to the conversation room and they arrive here as ``new_message``.

Wire format (both directions):
    {"event": "<name>", "data": <payload>}

Events (from client):
    join_business        data: "<businessId>" or {"businessId": ...}
    join_conversation    data: <conversationId> or {"conversationId": ...}
    leave_conversation   data: <conversationId> or {"conversationId": ...}
    typing_start         data: {"conversationId", "senderName", "senderType"}
    typing_stop          data: {"conversationId"} (optional)
    message_delivered    data: {"messageId", "conversationId"}
    message_read         data: {"messageId", "conversationId"}

Events (to client):
    connected, joined_business, joined_conversation, left_conversation,
    new_message, user_typing, user_stop_typing, message_status_update,
    conversation_updated, error

Typing:
    typing_start goes to every other member of the room and arms an
    auto-expiry timer (CHAT_TYPING_TIMEOUT_SECONDS). When the timer fires,
    typing_stop arrives, the connection leaves the conversation, or the
    socket disconnects, user_stop_typing goes to the whole room.
"""

from __future__ import annotations

import json
import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.constants import typing_timeout_seconds
from chat.models import MessageStatus, SenderType
from chat.realtime import ConnectionRegistry, Room, TypingState
from chat.services import MessageService, RealtimeEvent
from chat.validators import parse_business_id, parse_conversation_id, parse_message_id
from core.exceptions import BaseApplicationError, ValidationError
from core.helpers import iso_timestamp

logger = logging.getLogger(__name__)


def _field(data, key: str):
    """Accept either a bare value or an object carrying ``key``."""
    if isinstance(data, dict):
        return data.get(key)
    return data


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for rooms, typing indicators and receipts.

    Attributes:
        registry: Live connections in this process, keyed by channel name
    """

    registry = ConnectionRegistry()

    event_handlers = {
        "join_business": "_on_join_business",
        "join_conversation": "_on_join_conversation",
        "leave_conversation": "_on_leave_conversation",
        "typing_start": "_on_typing_start",
        "typing_stop": "_on_typing_stop",
        "message_delivered": "_on_message_delivered",
        "message_read": "_on_message_read",
    }

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def connect(self):
        await self.accept()
        self.registry.register(self.channel_name)
        await self.send_event(
            RealtimeEvent.CONNECTED,
            {"connectionId": self.channel_name, "timestamp": iso_timestamp()},
        )
        logger.info(f"Socket connected: {self.channel_name}")

    async def disconnect(self, close_code):
        state = self.registry.get(self.channel_name)
        if state is None:
            return

        typing = self.registry.cancel_typing(self.channel_name)
        if typing is not None:
            await self._broadcast_stop_typing(typing, exclude=self.channel_name)

        for room_name in list(state.rooms):
            await Room(room_name, self.channel_layer).unsubscribe(self.channel_name)

        self.registry.unregister(self.channel_name)
        logger.info(f"Socket disconnected: {self.channel_name} (code {close_code})")

    # -------------------------------------------------------------------------
    # Inbound events
    # -------------------------------------------------------------------------

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        try:
            content = await self.decode_json(text_data) if text_data else None
        except json.JSONDecodeError:
            content = None
        if not isinstance(content, dict):
            await self.send_error("Malformed event", "INVALID_EVENT")
            return
        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an inbound event.

        Expected format:
            {"event": "typing_start", "data": {"conversationId": 1, ...}}
        """
        event = content.get("event")
        handler_name = self.event_handlers.get(event) if isinstance(event, str) else None
        if handler_name is None:
            await self.send_error(f"Unknown event: {event}", "UNKNOWN_EVENT")
            return

        try:
            await getattr(self, handler_name)(content.get("data"))
        except BaseApplicationError as exc:
            logger.info(f"Socket {self.channel_name} {event} rejected: {exc}")
            await self.send_error(exc.message, exc.error_code)

    async def _on_join_business(self, data):
        business_id = parse_business_id(str(_field(data, "businessId") or ""))
        state = self.registry.get(self.channel_name)

        if state.business_id and state.business_id != business_id:
            previous = Room.for_business(state.business_id, self.channel_layer)
            await previous.unsubscribe(self.channel_name)
            state.rooms.discard(previous.name)

        room = Room.for_business(business_id, self.channel_layer)
        await room.subscribe(self.channel_name)
        state.rooms.add(room.name)
        state.business_id = business_id

        logger.info(f"Socket {self.channel_name} joined {room.name}")
        await self.send_event(RealtimeEvent.JOINED_BUSINESS, {"businessId": business_id})

    async def _on_join_conversation(self, data):
        conversation_id = parse_conversation_id(_field(data, "conversationId") or "")
        state = self.registry.get(self.channel_name)

        previous = state.current_conversation
        if previous is not None and previous != conversation_id:
            typing = self.registry.cancel_typing(self.channel_name, previous)
            if typing is not None:
                await self._broadcast_stop_typing(typing)

        room = Room.for_conversation(conversation_id, self.channel_layer)
        await room.subscribe(self.channel_name)
        state.rooms.add(room.name)
        state.current_conversation = conversation_id

        logger.info(f"Socket {self.channel_name} joined {room.name}")
        await self.send_event(
            RealtimeEvent.JOINED_CONVERSATION,
            {"conversationId": conversation_id},
        )

    async def _on_leave_conversation(self, data):
        conversation_id = parse_conversation_id(_field(data, "conversationId") or "")
        state = self.registry.get(self.channel_name)

        typing = self.registry.cancel_typing(self.channel_name, conversation_id)
        if typing is not None:
            await self._broadcast_stop_typing(typing)

        room = Room.for_conversation(conversation_id, self.channel_layer)
        await room.unsubscribe(self.channel_name)
        state.rooms.discard(room.name)
        if state.current_conversation == conversation_id:
            state.current_conversation = None

        logger.info(f"Socket {self.channel_name} left {room.name}")
        await self.send_event(
            RealtimeEvent.LEFT_CONVERSATION,
            {"conversationId": conversation_id},
        )

    async def _on_typing_start(self, data):
        if not isinstance(data, dict):
            raise ValidationError("typing_start requires an object payload")
        conversation_id = parse_conversation_id(data.get("conversationId") or "")
        sender_name = str(data.get("senderName") or "").strip()
        sender_type = data.get("senderType")
        if not sender_name:
            raise ValidationError("senderName is required")
        if sender_type not in SenderType.values:
            raise ValidationError("senderType must be customer or business")

        typing = TypingState(
            conversation_id=conversation_id,
            sender_name=sender_name,
            sender_type=sender_type,
        )
        previous = self.registry.arm_typing(
            self.channel_name,
            typing,
            typing_timeout_seconds(),
            self._expire_typing,
        )
        if previous is not None and previous.conversation_id != conversation_id:
            await self._broadcast_stop_typing(previous)

        await Room.for_conversation(conversation_id, self.channel_layer).publish(
            RealtimeEvent.USER_TYPING,
            self._typing_payload(typing),
            exclude=self.channel_name,
        )

    async def _on_typing_stop(self, data):
        raw = _field(data, "conversationId")
        conversation_id = parse_conversation_id(raw) if raw not in (None, "") else None
        typing = self.registry.cancel_typing(self.channel_name, conversation_id)
        if typing is not None:
            await self._broadcast_stop_typing(typing)

    async def _on_message_delivered(self, data):
        await self._relay_status(data, MessageStatus.DELIVERED)

    async def _on_message_read(self, data):
        await self._relay_status(data, MessageStatus.READ)

    async def _relay_status(self, data, status: str):
        message_id = parse_message_id(_field(data, "messageId") or "")
        await MessageService.update_status(message_id, status, exclude=self.channel_name)

    # -------------------------------------------------------------------------
    # Typing helpers
    # -------------------------------------------------------------------------

    async def _expire_typing(self, typing: TypingState) -> None:
        if self.registry.release_typing(self.channel_name, typing):
            logger.debug(
                f"Typing expired for {self.channel_name} in "
                f"conversation {typing.conversation_id}"
            )
            await self._broadcast_stop_typing(typing)

    async def _broadcast_stop_typing(
        self,
        typing: TypingState,
        exclude: str | None = None,
    ) -> None:
        await Room.for_conversation(typing.conversation_id, self.channel_layer).publish(
            RealtimeEvent.USER_STOP_TYPING,
            self._typing_payload(typing),
            exclude=exclude,
        )

    @staticmethod
    def _typing_payload(typing: TypingState) -> dict:
        return {
            "conversationId": typing.conversation_id,
            "senderName": typing.sender_name,
            "senderType": typing.sender_type,
            "timestamp": iso_timestamp(),
        }

    # -------------------------------------------------------------------------
    # Outbound events
    # -------------------------------------------------------------------------

    async def room_event(self, event):
        """
        Handle room.event messages from the channel layer.

        Forwards the event to this socket unless this connection is the one
        the publisher excluded.
        """
        if event.get("exclude") == self.channel_name:
            return
        await self.send_event(event["event"], event["payload"])

    async def send_event(self, name: str, data) -> None:
        await self.send_json({"event": name, "data": data})

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        await self.send_event(
            RealtimeEvent.ERROR,
            {"message": message, "code": code, "timestamp": iso_timestamp()},
        )
