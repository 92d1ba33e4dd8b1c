"""
Voyage Backend - Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the error scenarios of all services.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (voyage.main) translate them into JSON error
       responses with the matching HTTP status code.
Who:   Raised by services, dependencies and middleware.

Exception Hierarchy:
    VoyageError (base)                → 500
    ├── ValidationError               → 400 Bad Request
    ├── AuthenticationError           → 401 Unauthorized
    ├── PermissionDeniedError         → 403 Forbidden
    ├── NotFoundError                 → 404 Not Found
    ├── ConflictError                 → 409 Conflict
    ├── ShareCodeExpiredError         → 410 Gone
    ├── RateLimitExceededError        → 429 Too Many Requests
    ├── DatabaseError                 → 500 Internal Server Error
    ├── UpstreamServiceError          → 502 Bad Gateway
    └── CircuitBreakerOpenError       → 503 Service Unavailable
"""

from datetime import datetime
from typing import Any, Dict, Optional

# Returned in place of the message of any 500, whose details stay in the logs
GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again or contact support."


class VoyageError(Exception):
    """
    Base exception for all Voyage application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler says so)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VoyageError):
    """Client input broke a business rule (schema errors are handled by FastAPI)."""

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(VoyageError):
    """
    Missing, malformed or expired credentials, or a wrong password.

    The message never says which of email or password was wrong.
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(VoyageError):
    """Authenticated caller lacks the role or ownership the operation needs."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(VoyageError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so routes never deal with None.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(VoyageError):
    """A uniqueness rule would be broken (email taken, booking already stored)."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ShareCodeExpiredError(VoyageError):
    """A trip share code exists but its validity window has passed."""

    status_code = 410
    error_code = "share_code_expired"

    def __init__(
        self,
        expired_at: Optional[datetime] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if expired_at is not None:
            ctx["expired_at"] = expired_at.isoformat()
        super().__init__(message="This share code has expired", context=ctx)
        self.expired_at = expired_at


class DatabaseError(VoyageError):
    """
    A database operation failed unexpectedly.

    The client always gets a generic message; details go to the log only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamServiceError(VoyageError):
    """A travel provider failed, timed out, or is not configured."""

    status_code = 502
    error_code = "upstream_error"

    def __init__(
        self,
        provider: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["provider"] = provider
        super().__init__(
            message=message or f"Provider '{provider}' could not be reached",
            context=ctx,
        )
        self.provider = provider


class CircuitBreakerOpenError(VoyageError):
    """
    The circuit breaker of a provider is OPEN.

    CLOSED (normal) → failures increment counter
    → After N failures → OPEN (reject all calls for recovery_time seconds)
    → After the timeout → HALF-OPEN (allow one test call)
    → Test succeeds → CLOSED; test fails → OPEN again
    """

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        provider: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        target = f"Provider '{provider}'" if provider else "The upstream service"
        message = (
            f"{target} is temporarily unavailable due to repeated failures. "
            f"Retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        if provider:
            ctx["provider"] = provider
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class RateLimitExceededError(VoyageError):
    """Client exceeded the per-IP request budget of the current window."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
