"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure shared by the domain apps:

- Generic, reusable base classes (no domain-specific logic)
- The JSON envelope every API response uses
- Error handling that turns exceptions into envelopes

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - DatabaseError: Storage failures (details never reach clients)
    - FileUploadError: Rejected uploads
    - ServerError: Catch-all internal failure

Responses (import from core.responses):
    - envelope_response / error_response: Success and failure envelopes
    - SuccessMessage: Default success messages

Exception handling (core.exception_handler):
    - envelope_exception_handler: DRF EXCEPTION_HANDLER

Middleware (core.middleware):
    - RequestIDMiddleware: Assigns and echoes X-Request-ID
    - RequestLoggingMiddleware: One log line per API request

Helpers (import from core.helpers):
    - generate_token: Cryptographically secure token generation
    - validate_uuid: UUID validation
    - iso_timestamp: ISO-8601 timestamps with a Z suffix
    - format_file_size: Human-readable byte counts
    - get_client_ip: Client IP extraction from request

Note:
    - Business logic should NOT go here. Extend core classes in your domain apps.
    - Django models are NOT imported here to avoid AppRegistryNotReady errors.
      Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    DatabaseError,
    FileUploadError,
    NotFoundError,
    ServerError,
    ValidationError,
)

# Helpers (no Django model dependencies)
from .helpers import (
    format_file_size,
    generate_token,
    get_client_ip,
    iso_timestamp,
    validate_uuid,
)
