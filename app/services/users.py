"""User administration: profile, password, role and status changes."""

import logging
from typing import TYPE_CHECKING

from app.core.security import hash_password, verify_password
from app.models import Role, User
from app.schemas.users import UpdatePasswordRequest, UpdateUserRequest
from app.services import account_guard
from app.services.credential_store import SORTABLE_USER_FIELDS, CredentialStore
from app.services.errors import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    PasswordMismatchError,
)

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _get_or_404(store: CredentialStore, user_id: int, for_update: bool = False) -> User:
    user = store.find_by_id(user_id, for_update=for_update)
    if user is None:
        raise NotFoundError(f"User not found with id: {user_id}")
    return user


def list_users(
    store: CredentialStore,
    page: int = 0,
    size: int = 20,
    sort_by: str = "id",
    sort_dir: str = "asc",
) -> tuple[list[User], int]:
    """Return one zero-based page of users and the total count."""
    if page < 0:
        raise InvalidInputError("page must be >= 0")
    if size < 1 or size > MAX_PAGE_SIZE:
        raise InvalidInputError(f"size must be between 1 and {MAX_PAGE_SIZE}")
    if sort_by not in SORTABLE_USER_FIELDS:
        raise InvalidInputError(
            f"Invalid sort property: {sort_by}. Allowed: {', '.join(SORTABLE_USER_FIELDS)}"
        )
    direction = sort_dir.lower()
    if direction not in ("asc", "desc"):
        raise InvalidInputError("sort_dir must be 'asc' or 'desc'")
    return store.list_users(
        offset=page * size,
        limit=size,
        sort_by=sort_by,
        descending=direction == "desc",
    )


def get_user(store: CredentialStore, user_id: int) -> User:
    return _get_or_404(store, user_id)


def update_user(store: CredentialStore, user_id: int, body: UpdateUserRequest) -> User:
    """Apply the non-null fields of body. A new email must not belong to anyone else."""
    user = _get_or_404(store, user_id)
    email = str(body.email) if body.email is not None else None
    if email is not None and email != user.email and store.exists_by_email(email):
        raise DuplicateIdentityError("Email already exists.")

    if body.first_name is not None:
        user.first_name = body.first_name
    if body.last_name is not None:
        user.last_name = body.last_name
    if body.phone_number is not None:
        user.phone_number = body.phone_number
    if email is not None:
        user.email = email
    user = store.save(user)
    logger.info("Updated profile of user id=%s", user.id)
    return user


def delete_user(store: CredentialStore, user_id: int) -> None:
    if not store.delete_by_id(user_id):
        raise NotFoundError(f"User not found with id: {user_id}")
    logger.info("Deleted user id=%s", user_id)


def update_password(
    store: CredentialStore,
    user_id: int,
    body: UpdatePasswordRequest,
    settings: "Settings",
) -> None:
    """
    Change a password after checking the current one.

    The confirmation is compared before the store is touched.
    """
    if body.new_password != body.confirm_password:
        raise PasswordMismatchError()

    user = _get_or_404(store, user_id)
    if not verify_password(body.current_password, user.password_hash):
        raise InvalidCredentialsError("Current password is incorrect.")

    user.password_hash = hash_password(body.new_password, rounds=settings.BCRYPT_ROUNDS)
    store.save(user)
    logger.info("Password changed for user id=%s", user.id)


def update_roles(store: CredentialStore, user_id: int, role_ids: list[int]) -> User:
    """
    Replace the user's role set.

    Every id must resolve; otherwise NotFoundError is raised and the existing
    roles are left untouched.
    """
    unique_ids = list(dict.fromkeys(role_ids))
    if not unique_ids:
        raise InvalidInputError("At least one role is required.")

    user = _get_or_404(store, user_id)
    roles: list[Role] = store.find_roles_by_ids(unique_ids)
    if len(roles) != len(unique_ids):
        found = {role.id for role in roles}
        missing = [rid for rid in unique_ids if rid not in found]
        raise NotFoundError(f"Role(s) not found: {', '.join(str(r) for r in missing)}")

    user.roles = roles
    user = store.save(user)
    logger.info("Roles of user id=%s set to %s", user.id, user.role_names)
    return user


def set_lock_status(store: CredentialStore, user_id: int, locked: bool) -> User:
    """Lock or unlock an account. Unlocking resets the failed-attempt counter."""
    user = _get_or_404(store, user_id, for_update=True)
    if locked:
        account_guard.force_lock(user)
    else:
        account_guard.force_unlock(user)
    user = store.save(user)
    logger.info("User id=%s is_locked=%s", user.id, user.is_locked)
    return user


def set_active_status(store: CredentialStore, user_id: int, active: bool) -> User:
    user = _get_or_404(store, user_id, for_update=True)
    user.is_active = active
    user = store.save(user)
    logger.info("User id=%s is_active=%s", user.id, user.is_active)
    return user


def list_roles(store: CredentialStore) -> list[Role]:
    return store.list_roles()
