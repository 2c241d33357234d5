"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Business, Conversation, Message model tests
- test_store.py: ChatStore persistence tests
- test_services.py: MessageService / ConversationService tests
- test_realtime.py: Room and ConnectionRegistry tests
- test_consumers.py: WebSocket consumer tests
- test_views.py: REST API endpoint tests

Usage:
    pytest app/chat/tests/
    pytest app/chat/tests/test_consumers.py
"""
