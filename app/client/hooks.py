"""
Client state holders.

Each holder owns a slice of local state and the subscriptions that keep it
current. They follow an explicit lifecycle: ``mount`` starts fetching and
subscribing, ``set_*`` switches to another business or conversation (tearing
down the previous subscriptions first), and ``unmount`` releases everything.

ConversationsState:
    Conversation list for a business, with manual refetch. When given a
    socket, ``conversation_updated`` events upsert entries and keep the list
    ordered by most recent activity.

MessagesState:
    Message history for one conversation. Joins the conversation room,
    appends ``new_message`` events deduplicated by id, applies
    ``message_status_update`` events, and sends messages optimistically: a
    local copy tagged with a ``clientId`` and status ``pending`` is appended
    at once and replaced by the server copy (or marked ``failed``).

SocketSession:
    One realtime connection for the lifetime of the top-level view, joined
    to the business room.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from client.api import APIError

if TYPE_CHECKING:
    from collections.abc import Callable

    from client.api import ChatAPIClient
    from client.socket_service import SocketService

logger = logging.getLogger(__name__)

PENDING = "pending"
FAILED = "failed"

# Forward-only ordering used when applying status updates locally
STATUS_RANK = {PENDING: 0, "sent": 1, "delivered": 2, "read": 3}


def _activity_key(conversation: dict) -> str:
    return conversation.get("lastMessageTime") or conversation.get("createdAt") or ""


class ConversationsState:
    def __init__(self, api: ChatAPIClient, socket: SocketService | None = None):
        self.api = api
        self.socket = socket
        self.business_id: str | None = None
        self.data: list[dict] = []
        self.loading = False
        self.error: APIError | None = None
        self._generation = 0
        self._subscribed = False

    async def mount(self, business_id: str) -> None:
        self.business_id = business_id
        if self.socket is not None and not self._subscribed:
            self.socket.on("conversation_updated", self._on_conversation_updated)
            self._subscribed = True
        await self.refetch()

    async def set_business(self, business_id: str) -> None:
        if business_id == self.business_id:
            return
        self.data = []
        await self.mount(business_id)

    async def refetch(self) -> None:
        """Reload the list; results for a business switched away from are dropped."""
        if self.business_id is None:
            return
        self._generation += 1
        generation = self._generation
        business_id = self.business_id

        self.loading = True
        self.error = None
        try:
            conversations = await self.api.get_conversations(business_id)
        except APIError as exc:
            if generation == self._generation:
                self.error = exc
                self.loading = False
            return

        if generation == self._generation:
            self.data = conversations or []
            self.loading = False

    def unmount(self) -> None:
        self._generation += 1
        if self.socket is not None and self._subscribed:
            self.socket.off("conversation_updated", self._on_conversation_updated)
        self._subscribed = False
        self.business_id = None
        self.loading = False

    def _on_conversation_updated(self, conversation: dict) -> None:
        if not isinstance(conversation, dict):
            return
        if conversation.get("businessId") != self.business_id:
            return
        others = [c for c in self.data if c.get("id") != conversation.get("id")]
        others.append(conversation)
        others.sort(key=lambda c: (_activity_key(c), c.get("id") or 0), reverse=True)
        self.data = others


class MessagesState:
    def __init__(self, api: ChatAPIClient, socket: SocketService | None = None):
        self.api = api
        self.socket = socket
        self.conversation_id: int | None = None
        self.messages: list[dict] = []
        self.conversation: dict | None = None
        self.loading = False
        self.error: APIError | None = None
        self._generation = 0
        self._handlers: dict[str, Callable] = {}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def mount(self, conversation_id: int) -> None:
        self.conversation_id = conversation_id
        self.messages = []
        self.conversation = None
        self._generation += 1
        await self._subscribe(conversation_id)
        await self.refetch()

    async def set_conversation(self, conversation_id: int) -> None:
        if conversation_id == self.conversation_id:
            return
        await self.unmount()
        await self.mount(conversation_id)

    async def unmount(self) -> None:
        """Leave the room and detach every handler this holder registered."""
        self._generation += 1
        previous = self.conversation_id
        if self.socket is not None:
            for event, handler in self._handlers.items():
                self.socket.off(event, handler)
            if previous is not None and self.socket.connected:
                await self.socket.leave_conversation(previous)
        self._handlers = {}
        self.conversation_id = None
        self.loading = False

    async def _subscribe(self, conversation_id: int) -> None:
        if self.socket is None:
            return
        self._handlers = {
            "new_message": self._on_new_message,
            "message_status_update": self._on_status_update,
        }
        for event, handler in self._handlers.items():
            self.socket.on(event, handler)
        if self.socket.connected:
            await self.socket.join_conversation(conversation_id)

    async def refetch(self) -> None:
        if self.conversation_id is None:
            return
        generation = self._generation
        conversation_id = self.conversation_id

        self.loading = True
        self.error = None
        try:
            result = await self.api.get_messages(conversation_id)
        except APIError as exc:
            if generation == self._generation:
                self.error = exc
                self.loading = False
            return
        if generation != self._generation:
            return

        self.conversation = result.get("conversation")
        fetched = result.get("messages") or []
        known = {m["id"] for m in fetched if m.get("id") is not None}
        # Keep live or optimistic messages that arrived while the fetch was in flight
        extra = [m for m in self.messages if m.get("id") is None or m["id"] not in known]
        self.messages = fetched + extra
        self.loading = False

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------

    async def send_message(
        self,
        sender_type: str,
        sender_name: str,
        content: str | None = None,
        *,
        message_type: str | None = None,
        file_url: str | None = None,
        file_name: str | None = None,
    ) -> dict:
        """
        Send a message, appending a pending local copy first.

        Raises:
            APIError: The send failed; the local copy is marked failed.
        """
        if self.conversation_id is None:
            raise RuntimeError("No conversation mounted")
        conversation_id = self.conversation_id
        client_id = f"local-{uuid.uuid4().hex}"
        pending = {
            "id": None,
            "clientId": client_id,
            "conversationId": conversation_id,
            "senderType": sender_type,
            "senderName": sender_name,
            "content": content,
            "messageType": message_type or ("text" if content else "file"),
            "fileUrl": file_url,
            "fileName": file_name,
            "status": PENDING,
            "timestamp": None,
        }
        self.messages.append(pending)

        try:
            message = await self.api.send_message(
                conversation_id,
                sender_type=sender_type,
                sender_name=sender_name,
                content=content,
                message_type=message_type,
                file_url=file_url,
                file_name=file_name,
            )
        except APIError:
            self._mark_failed(client_id)
            raise

        self._confirm(client_id, message)
        return message

    def _confirm(self, client_id: str, message: dict) -> None:
        """Swap the pending copy for the server copy, unless the echo already arrived."""
        echoed = any(m.get("id") == message.get("id") for m in self.messages)
        confirmed = []
        for existing in self.messages:
            if existing.get("clientId") == client_id:
                if not echoed:
                    confirmed.append(message)
                continue
            confirmed.append(existing)
        self.messages = confirmed

    def _mark_failed(self, client_id: str) -> None:
        for existing in self.messages:
            if existing.get("clientId") == client_id:
                existing["status"] = FAILED

    def retryable(self) -> list[dict]:
        return [m for m in self.messages if m.get("status") == FAILED]

    def discard_failed(self, client_id: str) -> None:
        self.messages = [
            m for m in self.messages
            if not (m.get("clientId") == client_id and m.get("status") == FAILED)
        ]

    # -------------------------------------------------------------------------
    # Realtime handlers
    # -------------------------------------------------------------------------

    def _on_new_message(self, message: Any) -> None:
        if not isinstance(message, dict) or message.get("conversationId") != self.conversation_id:
            return
        if any(m.get("id") == message.get("id") for m in self.messages):
            return
        self.messages.append(message)

    def _on_status_update(self, update: Any) -> None:
        if not isinstance(update, dict) or update.get("conversationId") != self.conversation_id:
            return
        status = update.get("status")
        for existing in self.messages:
            if existing.get("id") != update.get("messageId"):
                continue
            if status == FAILED or STATUS_RANK.get(status, -1) > STATUS_RANK.get(
                existing.get("status"), -1
            ):
                existing["status"] = status


class SocketSession:
    """
    Realtime connection scoped to the top-level view.

    Example:
        session = SocketSession(lambda: SocketService(url))
        await session.mount("tech-store")
        ...
        await session.unmount()
    """

    def __init__(self, socket_factory: Callable[[], SocketService]):
        self._socket_factory = socket_factory
        self.socket: SocketService | None = None
        self.business_id: str | None = None

    @property
    def connected(self) -> bool:
        return self.socket is not None and self.socket.connected

    async def mount(self, business_id: str) -> SocketService:
        if self.socket is None:
            self.socket = self._socket_factory()
            await self.socket.connect()
        self.business_id = business_id
        await self.socket.join_business(business_id)
        return self.socket

    async def set_business(self, business_id: str) -> None:
        if business_id != self.business_id and self.socket is not None:
            self.business_id = business_id
            await self.socket.join_business(business_id)

    async def unmount(self) -> None:
        socket, self.socket = self.socket, None
        self.business_id = None
        if socket is not None:
            await socket.close()
