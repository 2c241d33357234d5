"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the chat domain but are
essential for running the API: health checks, the endpoint index, and the
JSON 404/500 handlers wired in ``config.urls``.
"""

import logging
import time

from django.db import connection
from django.http import JsonResponse
from drf_spectacular.utils import extend_schema
from rest_framework.decorators import api_view, throttle_classes

from core.responses import error_json_response, get_request_id, success_payload

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()

API_ENDPOINTS = {
    "conversations": {
        "GET /api/conversations/business/:businessId": "List a business's conversations (?search=)",
        "POST /api/conversations": "Start a conversation",
        "GET /api/conversations/:id": "Get one conversation",
        "GET /api/conversations/:id/messages": "List messages (?limit=&offset=)",
        "POST /api/conversations/:id/messages": "Send a message",
        "PATCH /api/conversations/:id/status": "Update conversation status",
        "POST /api/conversations/:id/read": "Mark customer messages read",
        "PATCH /api/messages/:id/status": "Advance message delivery status",
    },
    "business": {
        "GET /api/business/:businessId": "Get business info",
        "PATCH /api/business/:businessId": "Update business name or logo",
        "PATCH /api/business/:businessId/status": "Update business status",
        "GET /api/business/:businessId/stats": "Aggregate statistics",
        "GET /api/business/:businessId/profile": "Business info with statistics",
    },
    "upload": {
        "POST /api/upload": "Upload an attachment (multipart field 'file')",
        "GET /api/upload/:filename": "Uploaded file info",
        "DELETE /api/upload/:filename": "Delete an uploaded file",
    },
    "system": {
        "GET /api/health": "Health check",
        "GET /api/docs": "This index",
        "GET /api/schema": "OpenAPI schema",
        "GET /api/redoc": "ReDoc documentation",
    },
    "realtime": {
        "WS /ws/chat/": "Socket events: join_business, join_conversation, "
        "leave_conversation, typing_start, typing_stop, message_delivered, "
        "message_read",
    },
}


@extend_schema(exclude=True)
@api_view(["GET"])
@throttle_classes([])
def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns an envelope whose data (details, when unhealthy) holds:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - uptime: seconds since the process loaded this module

    HTTP Status Codes:
        200: All systems operational
        503: Database unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "uptime": round(time.monotonic() - _STARTED_AT, 1),
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        logger.exception("Health check could not reach the database")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    if not is_healthy:
        return error_json_response(
            request, 503, "SERVICE_UNAVAILABLE", "Service is unhealthy", details=health_status
        )

    payload = success_payload(
        health_status, "Service is healthy", 200, get_request_id(request)
    )
    return JsonResponse(payload, status=200)


@extend_schema(exclude=True)
@api_view(["GET"])
@throttle_classes([])
def api_docs(request):
    """Endpoint index for humans; the machine-readable schema is /api/schema."""
    payload = success_payload(
        {"name": "BizChat API", "version": "1.0.0", "endpoints": API_ENDPOINTS},
        "API documentation",
        200,
        get_request_id(request),
    )
    return JsonResponse(payload)


def not_found(request, exception=None):
    return error_json_response(
        request,
        404,
        "NOT_FOUND",
        f"Route {request.method} {request.path} not found",
    )


def server_error(request):
    logger.error(f"Unhandled server error on {request.method} {request.path}")
    return error_json_response(request, 500, "SERVER_ERROR", "Internal server error")
