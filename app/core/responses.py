"""
Uniform JSON envelopes for every API response.

Success:
    {
        "success": true,
        "statusCode": 200,
        "message": "Data retrieved successfully",
        "data": {...},
        "timestamp": "2024-01-01T12:00:00Z",
        "requestId": "4c1f..."
    }

Failure:
    {
        "success": false,
        "statusCode": 404,
        "error": "NOT_FOUND",
        "message": "Conversation not found",
        "details": null,
        "timestamp": "2024-01-01T12:00:00Z",
        "requestId": "4c1f..."
    }

Clients branch on ``success`` alone. The request id comes from
``core.middleware.RequestIDMiddleware`` and is echoed in ``X-Request-ID``.

Usage:
    from core.responses import SuccessMessage, envelope_response

    return envelope_response(request, data, SuccessMessage.CREATED, status=201)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.http import JsonResponse
from rest_framework.response import Response

from core.helpers import iso_timestamp

if TYPE_CHECKING:
    from typing import Any

    from django.http import HttpRequest


class SuccessMessage:
    """Default ``message`` values for success envelopes."""

    RETRIEVED = "Data retrieved successfully"
    CREATED = "Resource created successfully"
    UPDATED = "Resource updated successfully"
    DELETED = "Resource deleted successfully"
    MESSAGE_SENT = "Message sent successfully"
    FILE_UPLOADED = "File uploaded successfully"


def get_request_id(request: HttpRequest | None) -> str:
    """Return the id assigned by the middleware, or a fresh one."""
    request_id = getattr(request, "request_id", None)
    return request_id or str(uuid.uuid4())


def success_payload(
    data: Any,
    message: str,
    status_code: int,
    request_id: str,
) -> dict[str, Any]:
    return {
        "success": True,
        "statusCode": status_code,
        "message": message,
        "data": data,
        "timestamp": iso_timestamp(),
        "requestId": request_id,
    }


def error_payload(
    status_code: int,
    error: str,
    message: str,
    details: Any,
    request_id: str,
) -> dict[str, Any]:
    return {
        "success": False,
        "statusCode": status_code,
        "error": error,
        "message": message,
        "details": details,
        "timestamp": iso_timestamp(),
        "requestId": request_id,
    }


def envelope_response(
    request: HttpRequest,
    data: Any = None,
    message: str = SuccessMessage.RETRIEVED,
    status: int = 200,
) -> Response:
    """Wrap ``data`` in a success envelope for a DRF view."""
    payload = success_payload(data, message, status, get_request_id(request))
    return Response(payload, status=status)


def error_response(
    request: HttpRequest | None,
    status: int,
    error: str,
    message: str,
    details: Any = None,
) -> Response:
    """Failure envelope for a DRF view or exception handler."""
    payload = error_payload(status, error, message, details, get_request_id(request))
    return Response(payload, status=status)


def error_json_response(
    request: HttpRequest | None,
    status: int,
    error: str,
    message: str,
    details: Any = None,
) -> JsonResponse:
    """Failure envelope for plain Django views (404/500 handlers)."""
    payload = error_payload(status, error, message, details, get_request_id(request))
    return JsonResponse(payload, status=status)
