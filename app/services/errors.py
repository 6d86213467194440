"""
Typed errors raised by the auth and user services.

The API layer maps each error to an HTTP status in app.api.errors; services
never raise HTTPException themselves.
"""

from typing import Any


class AuthServiceError(Exception):
    """Base class for every error a service hands back to the transport layer."""

    code = "AUTH_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class DuplicateIdentityError(AuthServiceError):
    """Username or email already belongs to another account."""

    code = "DUPLICATE_IDENTITY"


class NotFoundError(AuthServiceError):
    """No such user or role."""

    code = "NOT_FOUND"


class InvalidCredentialsError(AuthServiceError):
    """Bad password, or a login for an unknown username."""

    code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid username or password.") -> None:
        super().__init__(message)


class AccountLockedError(AuthServiceError):
    """Account is locked; an administrator must unlock it."""

    code = "ACCOUNT_LOCKED"

    def __init__(
        self,
        message: str = "Account is locked. Contact an administrator to unlock it.",
    ) -> None:
        super().__init__(message)


class AccountDisabledError(AuthServiceError):
    code = "ACCOUNT_DISABLED"

    def __init__(self, message: str = "Account is disabled.") -> None:
        super().__init__(message)


class PasswordMismatchError(AuthServiceError):
    """New password and its confirmation differ."""

    code = "PASSWORD_MISMATCH"

    def __init__(
        self, message: str = "New password and confirm password must match."
    ) -> None:
        super().__init__(message)


class UnauthorizedError(AuthServiceError):
    """Token missing, invalid, expired, or no longer backed by a usable account."""

    code = "UNAUTHORIZED"


class TokenExpiredUnauthorizedError(UnauthorizedError):
    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token has expired.") -> None:
        super().__init__(message)


class ForbiddenError(AuthServiceError):
    """Caller is authenticated but lacks a permitted role."""

    code = "FORBIDDEN"


class StoreUnavailableError(AuthServiceError):
    """The credential store failed; not retried here."""

    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = "Credential store is unavailable.") -> None:
        super().__init__(message)


class InvalidInputError(AuthServiceError):
    code = "INVALID_INPUT"
