"""
Custom exception classes for the Cryptography Resource Manager.

Every exception raised by services and dependencies derives from
AppException and carries its HTTP status and a machine-readable code;
``src.core.handlers`` turns them into the standard error envelope.

Exception hierarchy:
    AppException (base)
    ├── ValidationError (400)
    │   ├── DuplicateEmailError
    │   ├── InvalidOrExpiredOTPError
    │   └── AlreadyVerifiedError
    ├── AuthenticationError (401)
    │   ├── InvalidCredentialsError
    │   ├── EmailNotVerifiedError
    │   ├── AccountSuspendedError
    │   ├── AccountInactiveError
    │   ├── InvalidTokenError
    │   └── TokenExpiredError
    ├── AuthorizationError (403)
    │   ├── InsufficientPermissionsError
    │   └── InactiveAccountError
    ├── NotFoundError (404)
    └── InternalError (500)
        ├── RegistrationFailedError
        └── NotificationError
"""

from typing import Any


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    Subclasses set ``status_code``, ``error_code`` and ``message`` as class
    attributes; a message passed at raise time replaces the default.

    Attributes:
        status_code: HTTP status code for the error
        error_code: Machine-readable error code
        message: Human-readable error message
        details: Additional error details (empty dict when none)
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# =============================================================================
# Validation Errors (400 Bad Request)
# =============================================================================


class ValidationError(AppException):
    """Base class for validation errors and rejected client input."""

    status_code = 400
    error_code = "VALIDATION_ERROR"
    message = "Validation failed"


class DuplicateEmailError(ValidationError):
    """Raised when registering an email that already has an account."""

    error_code = "DUPLICATE_EMAIL"
    message = "Email is already registered"


class InvalidOrExpiredOTPError(ValidationError):
    """
    Raised when a one-time code is missing, wrong, expired or used up.

    The cases share one message so a caller cannot tell which applied.
    """

    error_code = "INVALID_OR_EXPIRED_OTP"
    message = "Invalid or expired OTP"


class AlreadyVerifiedError(ValidationError):
    """Raised when requesting a verification code for a verified email."""

    error_code = "ALREADY_VERIFIED"
    message = "Email is already verified"


# =============================================================================
# Authentication Errors (401 Unauthorized)
# =============================================================================


class AuthenticationError(AppException):
    """Base class for authentication errors."""

    status_code = 401
    error_code = "AUTHENTICATION_FAILED"
    message = "Authentication failed"


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password; both report the same message."""

    error_code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class EmailNotVerifiedError(AuthenticationError):
    error_code = "EMAIL_NOT_VERIFIED"
    message = "Please verify your email before logging in"


class AccountSuspendedError(AuthenticationError):
    error_code = "ACCOUNT_SUSPENDED"
    message = "Account suspended due to too many failed login attempts"


class AccountInactiveError(AuthenticationError):
    error_code = "ACCOUNT_INACTIVE"
    message = "Account is inactive"


class InvalidTokenError(AuthenticationError):
    error_code = "INVALID_TOKEN"
    message = "Invalid authentication token"


class TokenExpiredError(AuthenticationError):
    error_code = "TOKEN_EXPIRED"
    message = "Authentication token has expired"


# =============================================================================
# Authorization Errors (403 Forbidden)
# =============================================================================


class AuthorizationError(AppException):
    """Base class for authorization errors."""

    status_code = 403
    error_code = "AUTHORIZATION_FAILED"
    message = "Access denied"


class InsufficientPermissionsError(AuthorizationError):
    """Raised when the caller lacks the capability a route requires."""

    error_code = "INSUFFICIENT_PERMISSIONS"
    message = "Insufficient permissions"


class InactiveAccountError(AuthorizationError):
    """Raised when a token belongs to an account that may no longer act."""

    error_code = "ACCOUNT_NOT_ACTIVE"
    message = "Account is not active"


# =============================================================================
# Resource Errors (404 Not Found)
# =============================================================================


class NotFoundError(AppException):
    """Raised when a requested resource is not found."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "Resource",
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or f"{resource} not found", details)


# =============================================================================
# Internal Errors (500 Internal Server Error)
# =============================================================================


class InternalError(AppException):
    """Raised when an operation fails for reasons the client cannot fix."""


class RegistrationFailedError(InternalError):
    """Raised when registration cannot complete and has been rolled back."""

    error_code = "REGISTRATION_FAILED"
    message = "Registration failed. Please try again."


class NotificationError(InternalError):
    """Raised when an email could not be delivered to the provider."""

    error_code = "NOTIFICATION_FAILED"
    message = "Failed to send email. Please try again."
