"""Custom exceptions for AuthGate.

Every business-rule failure raised by the auth core is an AuthGateError.
Each subclass carries the HTTP status the boundary layer answers with, so
main.py can render all of them through a single error handler.
"""


class AuthGateError(Exception):
    """Base exception for all AuthGate errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AuthGateError):
    """Request data failed validation."""

    status_code = 400


class ResourceNotFound(AuthGateError):
    """A referenced record does not exist."""

    status_code = 404


class ConflictError(AuthGateError):
    """A unique field is already in use."""

    status_code = 409


class UsernameTaken(ConflictError):
    """Registration attempted with a username that already exists."""


class EmailTaken(ConflictError):
    """Registration attempted with an email that is already registered."""


class AuthenticationError(AuthGateError):
    """Authentication failed or is missing."""

    status_code = 401


class InvalidCredentials(AuthenticationError):
    """Unknown identifier or wrong password. The two are indistinguishable."""


class InvalidToken(AuthenticationError):
    """Verification, access or refresh token is malformed, expired or revoked."""


class AccountNotVerified(AuthGateError):
    """Credentials are valid but the account has not been activated yet."""

    status_code = 403


class DatabaseError(AuthGateError):
    """Persistence layer failure."""

    status_code = 500
