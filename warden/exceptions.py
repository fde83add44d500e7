"""
Custom exception classes for Warden.

Every failure a request can run into is expressed as an AppException. The
numeric ``code`` is what the response envelope carries; the transport status
of the response is always 200, so callers tell outcomes apart by ``code``.

Exception hierarchy:
    AppException (base, 500)
    ├── BadRequestError (400)
    │   └── BatchNotFoundError
    ├── AuthenticationError (401)
    │   ├── InvalidCredentialsError
    │   ├── InvalidTokenError
    │   │   ├── MalformedTokenError
    │   │   └── InvalidSignatureError
    │   └── TokenExpiredError
    ├── AuthorizationError (403)
    │   └── InsufficientPermissionsError
    ├── NotFoundError (404)
    ├── ConflictError (409)
    │   └── AlreadyExistsError
    ├── RateLimitExceededError (429)
    └── InternalError (500)

Subclasses only declare their ``code``, ``error_code`` and default message;
raising one with no arguments yields the default message.
"""

from typing import Any


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    Attributes:
        code: Numeric failure category surfaced in the envelope
        error_code: Machine-readable error code (logged, not returned)
        message: Human-readable error message
        details: Optional additional error details (logged, not returned)
    """

    code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred. Please contact support."

    def __init__(
        self,
        message: str | None = None,
        code: int | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if code is not None:
            self.code = code
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}

    def to_envelope(self) -> dict[str, Any]:
        """Failure envelope: the code, the message and null data."""
        return {"code": self.code, "msg": self.message, "data": None}


# =============================================================================
# 400
# =============================================================================


class BadRequestError(AppException):
    """Input could not be bound or failed validation."""

    code = 400
    error_code = "BAD_REQUEST"
    default_message = "Bad request"


class BatchNotFoundError(BadRequestError):
    """A batch operation referenced ids that do not exist; nothing was applied."""

    error_code = "BATCH_NOT_FOUND"

    def __init__(self, resource: str, missing_ids: list[str]) -> None:
        super().__init__(
            f"{resource} not found: {', '.join(missing_ids)}",
            details={"missing_ids": missing_ids},
        )


# =============================================================================
# 401
# =============================================================================


class AuthenticationError(AppException):
    code = 401
    error_code = "AUTHENTICATION_FAILED"
    default_message = "Authentication failed"


class InvalidCredentialsError(AuthenticationError):
    """Unknown username or wrong password; the two are not told apart."""

    error_code = "INVALID_CREDENTIALS"
    default_message = "Invalid username or password"


class InvalidTokenError(AuthenticationError):
    error_code = "INVALID_TOKEN"
    default_message = "Invalid token"


class MalformedTokenError(InvalidTokenError):
    error_code = "MALFORMED_TOKEN"
    default_message = "Malformed token"


class InvalidSignatureError(InvalidTokenError):
    error_code = "INVALID_SIGNATURE"
    default_message = "Invalid token signature"


class TokenExpiredError(AuthenticationError):
    error_code = "TOKEN_EXPIRED"
    default_message = "Token has expired"


# =============================================================================
# 403
# =============================================================================


class AuthorizationError(AppException):
    code = 403
    error_code = "AUTHORIZATION_FAILED"
    default_message = "Access forbidden"


class InsufficientPermissionsError(AuthorizationError):
    """No held permission covers the requested route."""

    error_code = "INSUFFICIENT_PERMISSIONS"
    default_message = "Insufficient permissions to perform this action"


# =============================================================================
# 404 / 409
# =============================================================================


class NotFoundError(AppException):
    """
    A referenced entity does not exist.

    Example:
        raise NotFoundError("Role")  # "Role not found"
    """

    code = 404
    error_code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "Resource",
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or f"{resource} not found", details=details)


class ConflictError(AppException):
    """The write would break a uniqueness rule, e.g. a duplicate role assignment."""

    code = 409
    error_code = "CONFLICT"
    default_message = "Resource conflict"


class AlreadyExistsError(ConflictError):
    """
    An entity with the same unique key already exists.

    Example:
        raise AlreadyExistsError("User with this username")
    """

    error_code = "ALREADY_EXISTS"

    def __init__(self, resource: str = "Resource", message: str | None = None) -> None:
        super().__init__(message or f"{resource} already exists")


# =============================================================================
# 429 / 500
# =============================================================================


class RateLimitExceededError(AppException):
    code = 429
    error_code = "RATE_LIMIT_EXCEEDED"
    default_message = "Rate limit exceeded. Please try again later."


class InternalError(AppException):
    """Store or infrastructure failure. The message never carries internals."""
