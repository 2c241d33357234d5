"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations                           POST
        /conversations/business/{businessId}     GET
        /conversations/{id}                      GET
        /conversations/{id}/messages             GET, POST
        /conversations/{id}/status               PATCH
        /conversations/{id}/read                 POST

    Messages:
        /messages/{id}/status                    PATCH

    Business:
        /business/{businessId}                   GET, PATCH
        /business/{businessId}/status            PATCH
        /business/{businessId}/stats             GET
        /business/{businessId}/profile           GET

All URLs are prefixed with /api/ in the main URL configuration. Identifiers
are captured as strings and validated in the views so malformed ids produce
VALIDATION_ERROR envelopes rather than routing misses.
"""

from django.urls import path

from chat import views

app_name = "chat"

urlpatterns = [
    # Conversations
    path(
        "conversations",
        views.ConversationCreateView.as_view(),
        name="conversation-create",
    ),
    path(
        "conversations/business/<str:business_id>",
        views.BusinessConversationListView.as_view(),
        name="business-conversation-list",
    ),
    path(
        "conversations/<str:conversation_id>",
        views.ConversationDetailView.as_view(),
        name="conversation-detail",
    ),
    path(
        "conversations/<str:conversation_id>/messages",
        views.ConversationMessagesView.as_view(),
        name="conversation-messages",
    ),
    path(
        "conversations/<str:conversation_id>/status",
        views.ConversationStatusView.as_view(),
        name="conversation-status",
    ),
    path(
        "conversations/<str:conversation_id>/read",
        views.ConversationReadView.as_view(),
        name="conversation-read",
    ),
    # Messages
    path(
        "messages/<str:message_id>/status",
        views.MessageStatusView.as_view(),
        name="message-status",
    ),
    # Business
    path(
        "business/<str:business_id>",
        views.BusinessDetailView.as_view(),
        name="business-detail",
    ),
    path(
        "business/<str:business_id>/status",
        views.BusinessStatusView.as_view(),
        name="business-status",
    ),
    path(
        "business/<str:business_id>/stats",
        views.BusinessStatsView.as_view(),
        name="business-stats",
    ),
    path(
        "business/<str:business_id>/profile",
        views.BusinessProfileView.as_view(),
        name="business-profile",
    ),
]
