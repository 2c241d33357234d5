"""
DRF exception handler that renders every failure as an error envelope.

Configured in settings:
    REST_FRAMEWORK = {
        "EXCEPTION_HANDLER": "core.exception_handler.envelope_exception_handler",
    }

Mapping:
    core BaseApplicationError  -> its own status_code / error_code
    DRF ValidationError        -> 400 VALIDATION_ERROR, field errors in details
    DRF ParseError             -> 400 VALIDATION_ERROR
    DRF NotFound / Http404     -> 404 NOT_FOUND
    DRF Throttled              -> 429 RATE_LIMIT_EXCEEDED
    other DRF APIException     -> its status code, default code upper-cased
    anything else              -> 500 SERVER_ERROR, logged with traceback
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.views import set_rollback

from core.exceptions import BaseApplicationError, ServerError
from core.responses import error_response

if TYPE_CHECKING:
    from typing import Any

    from rest_framework.response import Response

logger = logging.getLogger(__name__)


def envelope_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    request = context.get("request")
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    set_rollback()

    if isinstance(exc, BaseApplicationError):
        if exc.status_code >= 500:
            logger.error(f"{view_name} failed: {exc}", exc_info=exc)
        else:
            logger.info(f"{view_name} rejected request: {exc}")
        return error_response(
            request,
            exc.status_code,
            exc.error_code,
            exc.message,
            exc.public_details,
        )

    if isinstance(exc, Http404):
        return error_response(request, 404, "NOT_FOUND", "Resource not found")

    if isinstance(exc, drf_exceptions.ValidationError):
        return error_response(
            request,
            400,
            "VALIDATION_ERROR",
            "Validation failed",
            exc.detail,
        )

    if isinstance(exc, drf_exceptions.ParseError):
        return error_response(request, 400, "VALIDATION_ERROR", str(exc.detail))

    if isinstance(exc, drf_exceptions.Throttled):
        response = error_response(
            request,
            429,
            "RATE_LIMIT_EXCEEDED",
            "Too many requests from this IP, please try again later.",
            {"retryAfter": exc.wait},
        )
        if exc.wait is not None:
            response["Retry-After"] = str(int(exc.wait))
        return response

    if isinstance(exc, drf_exceptions.APIException):
        return error_response(
            request,
            exc.status_code,
            str(exc.default_code).upper(),
            str(exc.detail),
        )

    logger.exception(f"Unhandled exception in {view_name}")
    fallback = ServerError()
    return error_response(
        request,
        fallback.status_code,
        fallback.error_code,
        fallback.message,
    )
