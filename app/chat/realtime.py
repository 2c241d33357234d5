"""
Realtime rooms and per-connection state.

Room:
    A named broadcast group backed by a Channels channel-layer group. The
    same interface serves business rooms (``business_<id>``) and conversation
    rooms (``conversation_<id>``). Subscribers are consumer channel names;
    published events arrive at ``ChatConsumer.room_event``.

ConnectionRegistry:
    In-memory map of connection id -> ConnectionState, owned by the consumer
    class. Entries are inserted on connect and removed on disconnect. Each
    entry owns at most one typing timer (an asyncio task); arming a new one
    cancels the previous one, and cancellation is idempotent.

Everything here lives in one process's memory. Running several server
processes requires a shared channel layer and would still not share typing
state.

Usage:
    room = Room.for_conversation(42)
    await room.subscribe(channel_name)
    await room.publish("new_message", payload)

    # From synchronous code (REST views, tasks)
    Room.for_conversation(42).publish_sync("new_message", payload)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

from chat.constants import REALTIME_CONFIG

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime
    from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Rooms
# =============================================================================


class Room:
    """A named broadcast group."""

    def __init__(self, name: str, channel_layer=None):
        self.name = name
        self._channel_layer = channel_layer

    @classmethod
    def for_business(cls, business_id: str, channel_layer=None) -> Room:
        return cls(f"{REALTIME_CONFIG.BUSINESS_ROOM_PREFIX}{business_id}", channel_layer)

    @classmethod
    def for_conversation(cls, conversation_id: int | str, channel_layer=None) -> Room:
        return cls(
            f"{REALTIME_CONFIG.CONVERSATION_ROOM_PREFIX}{conversation_id}",
            channel_layer,
        )

    @property
    def channel_layer(self):
        return self._channel_layer or get_channel_layer()

    async def subscribe(self, connection_id: str) -> None:
        await self.channel_layer.group_add(self.name, connection_id)

    async def unsubscribe(self, connection_id: str) -> None:
        await self.channel_layer.group_discard(self.name, connection_id)

    async def publish(
        self,
        event: str,
        payload: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> None:
        """
        Deliver ``event`` to every subscriber.

        Args:
            event: Event name sent to clients (e.g. "new_message")
            payload: JSON-serializable event data
            exclude: Connection id that should not receive the event
        """
        await self.channel_layer.group_send(
            self.name,
            {
                "type": REALTIME_CONFIG.ROOM_EVENT_TYPE,
                "room": self.name,
                "event": event,
                "payload": payload,
                "exclude": exclude,
            },
        )
        logger.debug(f"Published {event} to {self.name}")

    def publish_sync(
        self,
        event: str,
        payload: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> None:
        async_to_sync(self.publish)(event, payload, exclude=exclude)

    def __repr__(self) -> str:
        return f"Room({self.name!r})"


# =============================================================================
# Connection Registry
# =============================================================================


@dataclass
class TypingState:
    """An armed typing indicator for one connection."""

    conversation_id: int
    sender_name: str
    sender_type: str
    started_at: datetime = field(default_factory=timezone.now)
    task: asyncio.Task | None = None


@dataclass
class ConnectionState:
    """Ephemeral state for one socket connection."""

    connection_id: str
    connected_at: datetime = field(default_factory=timezone.now)
    business_id: str | None = None
    current_conversation: int | None = None
    rooms: set[str] = field(default_factory=set)
    typing: TypingState | None = None


class ConnectionRegistry:
    """
    Per-process registry of live socket connections.

    Not thread-safe; all access happens on the server's event loop.
    """

    def __init__(self) -> None:
        self._connections: dict[str, ConnectionState] = {}

    def register(self, connection_id: str) -> ConnectionState:
        state = ConnectionState(connection_id=connection_id)
        self._connections[connection_id] = state
        return state

    def unregister(self, connection_id: str) -> ConnectionState | None:
        """Remove a connection, cancelling any armed typing timer."""
        state = self._connections.pop(connection_id, None)
        if state is not None and state.typing is not None:
            _cancel_task(state.typing.task)
            state.typing = None
        return state

    def get(self, connection_id: str) -> ConnectionState | None:
        return self._connections.get(connection_id)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    def arm_typing(
        self,
        connection_id: str,
        typing: TypingState,
        timeout: float,
        on_expire: Callable[[TypingState], Awaitable[None]],
    ) -> TypingState | None:
        """
        Start (or restart) the typing timer for a connection.

        Any previous timer is cancelled first, so a connection never has two
        live timers.

        Returns:
            The TypingState that was replaced, if any.
        """
        state = self._connections.get(connection_id)
        if state is None:
            return None

        previous = state.typing
        if previous is not None:
            _cancel_task(previous.task)

        async def expire() -> None:
            await asyncio.sleep(timeout)
            await on_expire(typing)

        typing.task = asyncio.ensure_future(expire())
        typing.task.add_done_callback(_log_expiry_failure)
        state.typing = typing
        return previous

    def cancel_typing(
        self,
        connection_id: str,
        conversation_id: int | None = None,
    ) -> TypingState | None:
        """
        Cancel the typing timer for a connection.

        When ``conversation_id`` is given, only a timer for that conversation
        is cancelled. Cancelling when nothing is armed is a no-op.

        Returns:
            The cancelled TypingState, or None if nothing was armed.
        """
        state = self._connections.get(connection_id)
        if state is None or state.typing is None:
            return None
        if conversation_id is not None and state.typing.conversation_id != conversation_id:
            return None

        typing = state.typing
        state.typing = None
        _cancel_task(typing.task)
        return typing

    def release_typing(self, connection_id: str, typing: TypingState) -> bool:
        """
        Clear ``typing`` if it is still the connection's armed timer.

        Used by the expiry callback so a stale timer cannot clear a newer one.
        """
        state = self._connections.get(connection_id)
        if state is None or state.typing is not typing:
            return False
        state.typing = None
        return True


def _log_expiry_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Typing expiry failed", exc_info=exc)


def _cancel_task(task: asyncio.Task | None) -> None:
    # An expiry task never cancels itself
    if task is None or task.done():
        return
    try:
        current = asyncio.current_task()
    except RuntimeError:
        current = None
    if task is current:
        return
    task.cancel()
