"""
Account lockout state machine.

An account is either unlocked with 0 <= failed_login_attempts < threshold, or
locked. Transitions mutate the User in place; the caller loads the row with a
lock and persists it so concurrent attempts on one account are not lost.
"""

import logging
from datetime import UTC, datetime

from app.models import User

logger = logging.getLogger(__name__)

DEFAULT_MAX_FAILED_LOGIN_ATTEMPTS = 5


def record_failure(
    user: User, max_attempts: int = DEFAULT_MAX_FAILED_LOGIN_ATTEMPTS
) -> bool:
    """
    Count one failed authentication attempt. Returns True if the account is locked afterwards.

    Unlocked(n) -> Unlocked(n + 1) below the threshold, Unlocked(threshold - 1) ->
    Locked with the counter at the threshold. Locked accounts keep their counter.
    """
    if user.is_locked:
        logger.warning(
            "Failed login attempt on locked account username=%s attempts=%s",
            user.username,
            user.failed_login_attempts,
        )
        return True

    attempts = (user.failed_login_attempts or 0) + 1
    user.failed_login_attempts = attempts
    if attempts >= max_attempts:
        user.is_locked = True
        logger.warning(
            "Account locked after %s failed login attempts: username=%s",
            attempts,
            user.username,
        )
        return True

    logger.info(
        "Failed login attempt %s/%s for username=%s",
        attempts,
        max_attempts,
        user.username,
    )
    return False


def record_success(user: User, now: datetime | None = None) -> None:
    """Any state -> Unlocked(0); stamps last_login."""
    user.failed_login_attempts = 0
    user.is_locked = False
    user.last_login = now or datetime.now(UTC)


def force_unlock(user: User) -> None:
    """Administrative unlock: always resets the failure counter."""
    user.is_locked = False
    user.failed_login_attempts = 0


def force_lock(user: User) -> None:
    """Administrative lock; the failure counter is left as is."""
    user.is_locked = True
    if user.failed_login_attempts is None:
        user.failed_login_attempts = 0
