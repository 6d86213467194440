"""
Authentication flows: registration, login with lockout, token refresh and
current-session introspection.

Functions are stateless: all account state is read from and written back to
the CredentialStore on every call.
"""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from app.core.security import (
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    TokenExpiredError,
    TokenInvalidError,
    create_access_token,
    create_refresh_token,
    extract_subject,
    hash_password,
    verify_password,
    verify_token,
)
from app.models import ROLE_USER, User
from app.schemas.auth import RegisterRequest, TokenResponse
from app.services import account_guard
from app.services.credential_store import CredentialStore
from app.services.errors import (
    AccountDisabledError,
    AccountLockedError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    NotFoundError,
    TokenExpiredUnauthorizedError,
    UnauthorizedError,
)

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _dummy_password_hash(rounds: int) -> str:
    # Verified against when the username is unknown so both failure paths cost a bcrypt check.
    return hash_password("not-a-real-password", rounds=rounds)


def register_user(
    store: CredentialStore, body: RegisterRequest, settings: "Settings"
) -> User:
    """
    Create an account with the standard user role.

    Raises DuplicateIdentityError if the username or email is taken. The
    database unique constraints back this check, so a concurrent duplicate
    registration also fails with DuplicateIdentityError at commit.
    """
    email = str(body.email)
    if store.exists_by_username(body.username):
        raise DuplicateIdentityError("Username already exists.")
    if store.exists_by_email(email):
        raise DuplicateIdentityError("Email already exists.")

    default_role = store.find_role_by_name(ROLE_USER)
    if default_role is None:
        raise NotFoundError("Default role not found; run the role bootstrap first.")

    user = User(
        username=body.username,
        email=email,
        password_hash=hash_password(body.password, rounds=settings.BCRYPT_ROUNDS),
        first_name=body.first_name,
        last_name=body.last_name,
        phone_number=body.phone_number,
        is_active=True,
        is_locked=False,
        failed_login_attempts=0,
        roles=[default_role],
    )
    user = store.save(user)
    logger.info("Registered user id=%s username=%s", user.id, user.username)
    return user


def issue_tokens(user: User, settings: "Settings") -> TokenResponse:
    """Issue a fresh access/refresh pair from the user's current roles."""
    roles = user.role_names
    return TokenResponse(
        access_token=create_access_token(user.username, roles, settings=settings),
        refresh_token=create_refresh_token(user.username, roles, settings=settings),
        token_type="bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        username=user.username,
        roles=roles,
    )


def login(
    store: CredentialStore, username: str, password: str, settings: "Settings"
) -> TokenResponse:
    """
    Authenticate with username and password and return an access/refresh pair.

    Unknown usernames and wrong passwords both raise InvalidCredentialsError.
    A locked account raises AccountLockedError even for the right password; a
    wrong password on a locked account is still recorded as a failed attempt.
    """
    user = store.find_by_username(username, for_update=True)
    if user is None:
        verify_password(password, _dummy_password_hash(settings.BCRYPT_ROUNDS))
        store.rollback()
        logger.info("Login failed: unknown username")
        raise InvalidCredentialsError()

    password_ok = verify_password(password, user.password_hash)

    if not user.is_account_non_locked:
        if not password_ok:
            account_guard.record_failure(user, settings.MAX_FAILED_LOGIN_ATTEMPTS)
            store.save(user)
        else:
            store.rollback()
        logger.info("Login rejected for locked account username=%s", user.username)
        raise AccountLockedError()

    if not user.is_enabled:
        store.rollback()
        logger.info("Login rejected for disabled account username=%s", user.username)
        raise AccountDisabledError()

    if not password_ok:
        account_guard.record_failure(user, settings.MAX_FAILED_LOGIN_ATTEMPTS)
        store.save(user)
        raise InvalidCredentialsError()

    account_guard.record_success(user)
    user = store.save(user)
    logger.info("Login succeeded for username=%s", user.username)
    return issue_tokens(user, settings)


def refresh_tokens(
    store: CredentialStore, refresh_token: str, settings: "Settings"
) -> TokenResponse:
    """
    Exchange a refresh token for a new pair carrying the account's current roles.

    The subject is read before expiry is checked so the account can be loaded;
    the token is then fully verified against that account.
    """
    try:
        username = extract_subject(refresh_token, settings=settings)
    except TokenInvalidError as e:
        raise UnauthorizedError("Invalid refresh token.") from e

    user = store.find_by_username(username)
    if user is None:
        raise NotFoundError("User not found.")

    try:
        verify_token(
            refresh_token,
            expected_subject=user.username,
            token_type=TOKEN_TYPE_REFRESH,
            settings=settings,
        )
    except TokenExpiredError as e:
        raise TokenExpiredUnauthorizedError("Refresh token has expired.") from e
    except TokenInvalidError as e:
        raise UnauthorizedError("Invalid refresh token.") from e

    if not (user.is_enabled and user.is_account_non_locked):
        logger.info("Refresh rejected for unusable account username=%s", user.username)
        raise UnauthorizedError("Account is disabled or locked.")

    logger.info("Refreshed tokens for username=%s", user.username)
    return issue_tokens(user, settings)


def authenticate_access_token(
    store: CredentialStore, access_token: str, settings: "Settings"
) -> tuple[User, dict[str, Any]]:
    """
    Verify an access token and load the account behind it.

    Returns (user, claims). Raises UnauthorizedError if the token is invalid or
    expired, or the account is gone, disabled or locked.
    """
    try:
        claims = verify_token(access_token, token_type=TOKEN_TYPE_ACCESS, settings=settings)
    except TokenExpiredError as e:
        raise TokenExpiredUnauthorizedError() from e
    except TokenInvalidError as e:
        raise UnauthorizedError("Invalid or expired token.") from e

    user = store.find_by_username(claims["sub"])
    if user is None:
        raise UnauthorizedError("User not found.")
    if not (user.is_enabled and user.is_account_non_locked):
        raise UnauthorizedError("Account is disabled or locked.")
    return user, claims


def current_session(
    store: CredentialStore, access_token: str, settings: "Settings"
) -> User:
    """Return the account behind a valid access token (the "who am I" operation)."""
    user, _ = authenticate_access_token(store, access_token, settings)
    return user
