"""
Python client for the chat backend.

This package provides:
- ChatAPIClient: REST calls with envelope unwrapping (httpx)
- SocketService: one realtime connection with an event handler registry
  (websockets)
- ConversationsState, MessagesState, SocketSession: state holders that keep
  a local view of conversations and messages in sync with REST and realtime
  events

Usage:
    from client import ChatAPIClient, MessagesState, SocketService

    async with ChatAPIClient("http://localhost:8000/api") as api:
        socket = await SocketService("ws://localhost:8000/ws/chat/").connect()
        messages = MessagesState(api, socket)
        await messages.mount(1)
        await messages.send_message("business", "Agent", content="Hello")
"""

from client.api import APIError, ChatAPIClient
from client.hooks import ConversationsState, MessagesState, SocketSession
from client.socket_service import SocketService

__all__ = [
    "APIError",
    "ChatAPIClient",
    "ConversationsState",
    "MessagesState",
    "SocketService",
    "SocketSession",
]
