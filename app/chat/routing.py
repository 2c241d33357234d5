"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - The single chat socket; rooms are joined with events

There is no socket authentication; the ASGI stack only checks the Origin
header against ALLOWED_HOSTS.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
