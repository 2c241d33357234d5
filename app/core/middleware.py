"""
Request-scoped middleware.

RequestIDMiddleware:
    Assigns ``request.request_id`` (honouring an incoming ``X-Request-ID``) and
    echoes it on the response. Envelopes use the same id as ``requestId``.

RequestLoggingMiddleware:
    Logs method, path, status code and duration for every API request.
"""

from __future__ import annotations

import logging
import re
import time
import uuid

from core.helpers import get_client_ip

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Accept client-supplied ids only when they look like ids
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-_.]{1,64}$")


class RequestIDMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        if incoming and _REQUEST_ID_PATTERN.match(incoming):
            request.request_id = incoming
        else:
            request.request_id = str(uuid.uuid4())

        response = self.get_response(request)
        response[REQUEST_ID_HEADER] = request.request_id
        return response


class RequestLoggingMiddleware:
    """Log one line per request under the API prefix."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith("/api"):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = (time.monotonic() - started) * 1000

        status_code = getattr(response, "status_code", "unknown")
        level = logging.INFO
        if isinstance(status_code, int) and status_code >= 500:
            level = logging.WARNING
        logger.log(
            level,
            f"{request.method} {request.path} {status_code} {duration_ms:.1f}ms",
            extra={
                "method": request.method,
                "path": request.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 1),
                "request_id": getattr(request, "request_id", None),
                "client_ip": get_client_ip(request),
            },
        )
        return response
