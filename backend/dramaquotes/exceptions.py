"""
Drama Quotes Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for every failure the services report.
How:   Each exception carries a client-safe `message` and a `context` dict that
       is logged but never returned. Global handlers in main.py map the types
       to HTTP status codes.
Who:   Raised by services and dependencies; caught by the global handlers.

Exception Hierarchy:
    DramaQuotesError (base)
    ├── ValidationError          → 400 Bad Request
    │   └── InvalidInput         → 400 (business-rule input checks)
    ├── ConflictError            → 409 Conflict (duplicate username / email)
    ├── AuthError                → 401 Unauthorized
    │   ├── InvalidCredentials
    │   ├── TokenMissing
    │   ├── TokenInvalid
    │   └── TokenExpired
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── InvalidReference         → 409 Conflict (referenced row disappeared)
    ├── CorruptCredential        → never sent; login reports InvalidCredentials
    ├── RaceRecovered            → internal to DramaResolver, never sent
    └── PersistenceError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class DramaQuotesError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DramaQuotesError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, malformed values, policy violations.
    HTTP:    400 Bad Request. Never retried.
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


class InvalidInput(ValidationError):
    """A service-level input rule was broken (short password, empty title, ...)."""


class ConflictError(DramaQuotesError):
    """
    Raised when registration would violate username or email uniqueness.

    The message never says which of the two collided.
    """

    def __init__(
        self,
        message: str = "A user with this username or email already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthError(DramaQuotesError):
    """
    Raised when a request cannot be attributed to a known user.

    HTTP:    401 Unauthorized with `WWW-Authenticate: Bearer`.
    Subclasses identify the cause for logging; the messages stay generic.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidCredentials(AuthError):
    """Unknown username or wrong password. One message for both."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid username or password", context=context)


class TokenMissing(AuthError):
    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Authentication token is missing", context=context)


class TokenInvalid(AuthError):
    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Authentication token is invalid", context=context)


class TokenExpired(AuthError):
    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Authentication token has expired", context=context)


class ForbiddenError(DramaQuotesError):
    """
    The caller is authenticated but asked to act as someone else.

    When:    A quote body names a `user_id` other than the token's identity.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(DramaQuotesError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class InvalidReference(DramaQuotesError):
    """
    A foreign key target of a new quote does not exist.

    resource="drama": the drama vanished between resolution and insert; a
    resubmission resolves the title again and can succeed.
    resource="user": the token outlived its user row; resubmitting cannot help.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        resource: str = "drama",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        message = f"The referenced {resource} no longer exists."
        if resource == "drama":
            message += " Please try again."
        super().__init__(message=message, context=ctx)


class CorruptCredential(DramaQuotesError):
    """
    The stored password hash is malformed or was produced by an unknown scheme.

    Mismatching passwords never raise this; only unreadable stored hashes do.
    """

    def __init__(
        self,
        message: str = "Stored credential could not be read",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RaceRecovered(DramaQuotesError):
    """
    Internal signal: a drama create lost to a concurrent writer and the winner's
    row was found. Carries the winner's id; DramaResolver returns it as a
    normal result.
    """

    def __init__(self, title: str, drama_id: int):
        super().__init__(
            message="Drama was created concurrently",
            context={"title": title, "drama_id": drama_id},
        )
        self.title = title
        self.drama_id = drama_id


class PersistenceError(DramaQuotesError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error. Safe for the caller to retry.
    The client always gets a generic message; the context is logged only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
