"""
FittedIn Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the expected failure modes.
How:   Each exception carries a user-safe message and an optional context
       dict. Global exception handlers (registered in main.py) map each type
       to an HTTP status code and a structured JSON error body.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    FittedInError (base)
    ├── ValidationError          → 400 Bad Request
    ├── InvalidOperationError    → 400 Bad Request (e.g. connecting to yourself)
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden (e.g. blocked relationship)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (duplicate request / email)
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class FittedInError(Exception):
    """
    Base exception for all FittedIn application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FittedInError):
    """
    Raised when client input fails a business rule.

    Schema-level problems are already answered by FastAPI with 422; this is
    for checks that need the database or the acting user.
    """

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


class InvalidOperationError(FittedInError):
    """Raised when a well-formed request asks for something impossible."""

    def __init__(
        self,
        message: str = "This operation is not allowed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(FittedInError):
    """
    Raised when credentials or bearer tokens are missing, wrong or expired.

    HTTP: 401 Unauthorized, with a `WWW-Authenticate: Bearer` header.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(FittedInError):
    """Raised when the acting user is identified but not allowed to proceed."""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(FittedInError):
    """
    Raised when a requested resource does not exist.

    Also used when the resource exists but is not addressable by the acting
    user (a connection request owned by someone else, another user's
    notification), so that callers cannot discover foreign ids.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(FittedInError):
    """
    Raised when the request collides with existing state.

    When: duplicate pending/accepted connection, a uniqueness-constraint
    violation on insert, or registering an email that is already taken.
    """

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(FittedInError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header for HTTP-compliant clients.
    """

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


class DatabaseError(FittedInError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. Detailed error info
    (SQL, constraint names) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
