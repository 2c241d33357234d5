"""
Realtime connection to the chat server.

SocketService wraps one websocket. Outbound events are sent as
``{"event": name, "data": payload}``; inbound events are dispatched to the
handlers registered with ``on``. Handlers may be plain functions or
coroutine functions. A handler that raises is logged and does not stop
dispatch to the others.

Usage:
    socket = SocketService("ws://localhost:8000/ws/chat/")
    await socket.connect()
    socket.on("new_message", handle_message)
    await socket.join_conversation(1)
    ...
    await socket.close()
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_URL = "ws://localhost:8000/ws/chat/"


class SocketService:
    """One realtime connection with an event handler registry."""

    def __init__(self, url: str = DEFAULT_SOCKET_URL, *, connector: Callable | None = None):
        self.url = url
        self._connector = connector or ws_connect
        self._connection = None
        self._reader: asyncio.Task | None = None
        self._handlers: dict[str, list[Callable]] = defaultdict(list)

    @property
    def connected(self) -> bool:
        return self._reader is not None and not self._reader.done()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> SocketService:
        if self.connected:
            return self
        self._connection = await self._connector(self.url)
        self._reader = asyncio.ensure_future(self._read_loop())
        logger.info(f"Socket connected to {self.url}")
        return self

    async def close(self) -> None:
        """Close the connection and drop every handler."""
        reader, self._reader = self._reader, None
        connection, self._connection = self._connection, None
        if reader is not None and not reader.done():
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
        if connection is not None:
            await connection.close()
        self._handlers.clear()
        logger.info(f"Socket to {self.url} closed")

    async def _read_loop(self) -> None:
        try:
            async for raw in self._connection:
                await self._dispatch(raw)
        except ConnectionClosed:
            logger.info(f"Socket to {self.url} closed by server")

    async def _dispatch(self, raw) -> None:
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed socket frame")
            return
        if not isinstance(message, dict) or not isinstance(message.get("event"), str):
            logger.warning("Ignoring socket frame without an event name")
            return

        event = message["event"]
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(message.get("data"))
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Handler for {event} failed")

    # -------------------------------------------------------------------------
    # Handler registry
    # -------------------------------------------------------------------------

    def on(self, event: str, handler: Callable) -> None:
        if handler not in self._handlers[event]:
            self._handlers[event].append(handler)

    def off(self, event: str, handler: Callable | None = None) -> None:
        """Remove one handler, or every handler for ``event``."""
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event, None)

    def handler_count(self, event: str | None = None) -> int:
        if event is not None:
            return len(self._handlers.get(event, ()))
        return sum(len(handlers) for handlers in self._handlers.values())

    # -------------------------------------------------------------------------
    # Outbound events
    # -------------------------------------------------------------------------

    async def emit(self, event: str, data: Any = None) -> None:
        if self._connection is None:
            raise ConnectionError("Socket is not connected")
        await self._connection.send(json.dumps({"event": event, "data": data}))

    async def join_business(self, business_id: str) -> None:
        await self.emit("join_business", {"businessId": business_id})

    async def join_conversation(self, conversation_id: int) -> None:
        await self.emit("join_conversation", {"conversationId": conversation_id})

    async def leave_conversation(self, conversation_id: int) -> None:
        await self.emit("leave_conversation", {"conversationId": conversation_id})

    async def start_typing(self, conversation_id: int, sender_name: str, sender_type: str) -> None:
        await self.emit(
            "typing_start",
            {
                "conversationId": conversation_id,
                "senderName": sender_name,
                "senderType": sender_type,
            },
        )

    async def stop_typing(self, conversation_id: int | None = None) -> None:
        data = {"conversationId": conversation_id} if conversation_id is not None else {}
        await self.emit("typing_stop", data)

    async def mark_delivered(self, message_id: int, conversation_id: int) -> None:
        await self.emit(
            "message_delivered",
            {"messageId": message_id, "conversationId": conversation_id},
        )

    async def mark_read(self, message_id: int, conversation_id: int) -> None:
        await self.emit(
            "message_read",
            {"messageId": message_id, "conversationId": conversation_id},
        )
