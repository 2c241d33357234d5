"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error envelopes across the REST API
- Machine-readable error codes for client handling
- Storage internals kept out of client-visible responses

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed or missing input (400)
    ├── NotFoundError - Unknown business, conversation, message or file (404)
    ├── DatabaseError - Storage failure, details suppressed (500)
    ├── FileUploadError - Bad MIME type or oversized payload (400)
    └── ServerError - Catch-all (500)

Usage:
    from core.exceptions import ValidationError, NotFoundError

    raise ValidationError("Invalid business ID format")

    raise NotFoundError(
        "Conversation not found",
        details={"conversation_id": conversation_id},
    )

    # The DRF exception handler turns these into envelopes:
    # {"success": false, "statusCode": 404, "error": "NOT_FOUND", ...}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        status_code: HTTP status used when the error reaches the API boundary
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for logging and API responses.

        Example:
            {
                "error": "Conversation not found",
                "error_code": "NOT_FOUND",
                "details": {"conversation_id": 7}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    @property
    def public_details(self) -> dict[str, Any] | None:
        """Details safe to send to the client."""
        return self.details or None

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for missing required fields, malformed identifiers, values outside a
    fixed enumeration, and messages with neither content nor attachment.
    Field-level errors go in ``details``.
    """

    default_error_code: str = "VALIDATION_ERROR"
    status_code: int = 400


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Use for single-resource lookups where existence is expected (business,
    conversation, message, uploaded file). List queries return empty results.
    """

    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class DatabaseError(BaseApplicationError):
    """
    Raised when the storage engine fails.

    Wraps driver and ORM exceptions at the store boundary. The original
    exception is chained (``raise ... from exc``) and logged server side;
    the client only ever sees the generic message.
    """

    default_error_code: str = "DATABASE_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str = "Database operation failed",
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, details)

    @property
    def public_details(self) -> dict[str, Any] | None:
        return None


class FileUploadError(BaseApplicationError):
    """Raised when an upload has a disallowed MIME type or is too large."""

    default_error_code: str = "FILE_UPLOAD_ERROR"
    status_code: int = 400


class ServerError(BaseApplicationError):
    """Generic internal failure. Also used for unexpected exceptions."""

    default_error_code: str = "SERVER_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str = "Internal server error",
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, details)
