"""
Chat app for business-to-customer messaging.

This app handles:
- Businesses, their conversations and message history
- REST endpoints for sending messages and updating statuses
- WebSocket rooms for live messages, typing indicators and receipts
- Demo data seeding after migrations

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See realtime.py for rooms and per-connection state.

Usage:
    from chat.services import MessageService
    from chat.store import ChatStore, MessageDraft

    conversation = await ChatStore.get_conversation_by_id(1)

    message = await MessageService.send_message(
        MessageDraft(
            conversation_id=1,
            sender_type="business",
            sender_name="Support",
            content="Hello!",
        )
    )
"""
