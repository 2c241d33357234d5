"""
URL configuration for the chat backend.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes. URLs carry no trailing slash.

URL Structure:
    /admin/                        - Django admin interface
    /uploads/<filename>            - Uploaded attachments
    /api/health                    - Health check (load balancers, Docker)
    /api/docs                      - Endpoint index
    /api/schema                    - OpenAPI schema (YAML)
    /api/redoc                     - ReDoc API documentation
    /api/                          - Chat endpoints
        conversations              - Start a conversation
        conversations/business/{businessId} - Conversations for a business
        conversations/{id}         - Conversation detail
        conversations/{id}/messages - Message list/send
        conversations/{id}/status  - Conversation status
        conversations/{id}/read    - Mark customer messages read
        messages/{id}/status       - Message delivery status
        business/{businessId}      - Business info/update
        business/{businessId}/status - Business availability
        business/{businessId}/stats - Aggregate statistics
        business/{businessId}/profile - Info with statistics
    /api/upload                    - Attachment upload
        upload/{filename}          - File info/delete
    /ws/chat/                      - WebSocket (see config.asgi)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path, re_path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import api_docs, health_check
from media.views import serve_upload

# =============================================================================
# API Routes
# =============================================================================
# All routes here are prefixed with /api/ automatically
api_patterns = [
    # System
    path("health", health_check, name="health_check"),
    path("docs", api_docs, name="api_docs"),
    path("schema", SpectacularAPIView.as_view(), name="schema"),
    path("redoc", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    # Chat
    path("", include("chat.urls")),
    # Media
    path("", include("media.urls")),
]

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),
    # Health check outside the API prefix (Docker, Kubernetes)
    path("health", health_check, name="root_health_check"),
    # Uploaded attachments
    re_path(r"^uploads/(?P<filename>[^/]+)$", serve_upload, name="uploads"),
    # API
    path("api/", include(api_patterns)),
]

handler404 = "core.views.not_found"
handler500 = "core.views.server_error"

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "BizChat Admin"
admin.site.site_title = "BizChat Admin"
admin.site.index_title = "Businesses, conversations and messages"
