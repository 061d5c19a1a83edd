"""
Domain exceptions for the auth API.

Every error that reaches the HTTP boundary inherits from AuthApiError and
carries the status code it maps to. Token errors never reach the client; the
auth gate treats them as "unauthenticated".
"""

from typing import Any, Optional


class AuthApiError(Exception):
    """Base exception for all auth API errors."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AuthApiError):
    """Malformed input (400)."""

    status_code = 400
    default_message = "Validation failed"


class PasswordMismatchError(ValidationError):
    default_message = "Passwords do not match"


class WeakPasswordError(ValidationError):
    default_message = (
        "Password must be at least 8 characters long and contain uppercase, "
        "lowercase, digit, and special character"
    )


class UserAlreadyExistsError(AuthApiError):
    """Username or email collides with an existing account (409)."""

    status_code = 409
    default_message = "Username or email is already registered"


class DuplicateUsernameError(UserAlreadyExistsError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username is already taken: {username}")


class DuplicateEmailError(UserAlreadyExistsError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email is already registered: {email}")


class AuthenticationError(AuthApiError):
    """Missing or rejected credentials (401)."""

    status_code = 401
    default_message = "Authentication failed"


class InvalidCredentialsError(AuthenticationError):
    # Same message for unknown user and wrong password.
    default_message = "Invalid username or password"


class AccountDisabledError(AuthenticationError):
    default_message = "Account is disabled"


class NotAuthenticatedError(AuthenticationError):
    default_message = "Authentication is required to access this resource"


class AccessDeniedError(AuthApiError):
    """Authenticated but lacking the required role (403)."""

    status_code = 403
    default_message = "Access denied"


class StorageUnavailableError(AuthApiError):
    """The user store could not be reached or failed mid-operation (500)."""

    status_code = 500
    default_message = "User storage is unavailable"


class TokenError(Exception):
    """Base for bearer token failures. Not mapped to a response."""


class MalformedTokenError(TokenError):
    """Token cannot be parsed, has a bad signature, or lacks required claims."""


class ExpiredTokenError(TokenError):
    """Token signature is valid but its expiry has passed."""
