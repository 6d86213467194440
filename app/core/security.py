"""Password hashing and JWT creation/verification for authentication."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Literal

import bcrypt
import jwt

from app.core.config import get_settings

if TYPE_CHECKING:
    from app.core.config import Settings

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"

TokenType = Literal["access", "refresh"]

REQUIRED_CLAIMS = ["sub", "exp", "iat", "type"]


class TokenError(Exception):
    """Base class for token verification failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenExpiredError(TokenError):
    """Raised when a token's signature is valid but its exp has passed."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class TokenInvalidError(TokenError):
    """Raised when a token is malformed, badly signed, or used for the wrong purpose."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Each call uses a fresh salt."""
    if rounds is None:
        rounds = get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(
        _password_bytes(plain_password), bcrypt.gensalt(rounds=rounds)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed: str | None) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes never match."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _create_token(
    sub: str,
    roles: list[str],
    token_type: TokenType,
    lifetime: timedelta,
    settings: "Settings",
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": sub,
        "roles": list(roles),
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def create_access_token(
    sub: str, roles: list[str], settings: "Settings | None" = None
) -> str:
    """Create a short-lived JWT access token carrying username and role names."""
    settings = settings or get_settings()
    return _create_token(
        sub,
        roles,
        TOKEN_TYPE_ACCESS,
        timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        settings,
    )


def create_refresh_token(
    sub: str, roles: list[str], settings: "Settings | None" = None
) -> str:
    """Create a long-lived JWT refresh token carrying username and role names."""
    settings = settings or get_settings()
    return _create_token(
        sub,
        roles,
        TOKEN_TYPE_REFRESH,
        timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MINUTES),
        settings,
    )


def _decode(token: str, settings: "Settings", verify_exp: bool) -> dict[str, Any]:
    return jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS, "verify_exp": verify_exp},
    )


def verify_token(
    token: str,
    expected_subject: str | None = None,
    token_type: TokenType | None = None,
    settings: "Settings | None" = None,
) -> dict[str, Any]:
    """
    Decode and validate a JWT; return its claims (sub, roles, type, iat, exp, jti).

    Raises TokenExpiredError when exp has passed, and TokenInvalidError for a bad
    signature, malformed token, wrong token type, or a subject other than
    expected_subject.
    """
    settings = settings or get_settings()
    if not token:
        raise TokenInvalidError("Missing token")
    try:
        claims = _decode(token, settings, verify_exp=True)
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except jwt.PyJWTError as e:
        raise TokenInvalidError() from e

    if token_type is not None and claims.get("type") != token_type:
        raise TokenInvalidError(f"Expected a {token_type} token")
    if expected_subject is not None and claims.get("sub") != expected_subject:
        raise TokenInvalidError("Token subject does not match account")
    if not isinstance(claims.get("roles", []), list):
        raise TokenInvalidError("Invalid token payload")
    return claims


def extract_subject(token: str, settings: "Settings | None" = None) -> str:
    """
    Return the token's subject without checking expiry.

    The signature is still verified, so tampered or unsigned tokens raise
    TokenInvalidError.
    """
    settings = settings or get_settings()
    if not token:
        raise TokenInvalidError("Missing token")
    try:
        claims = _decode(token, settings, verify_exp=False)
    except jwt.PyJWTError as e:
        raise TokenInvalidError() from e
    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub:
        raise TokenInvalidError("Invalid token payload")
    return sub
