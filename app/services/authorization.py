"""
Role-based authorization policy for protected operations.

Each operation maps to the set of roles allowed to invoke it. Operations in
SELF_OR_ADMIN_OPERATIONS are also allowed when the caller owns the resource.
"""

import logging
from collections.abc import Iterable

from app.models import ROLE_ADMIN, ROLE_MANAGER
from app.services.errors import ForbiddenError

logger = logging.getLogger(__name__)

OP_LIST_USERS = "users:list"
OP_READ_USER = "users:read"
OP_UPDATE_USER = "users:update"
OP_DELETE_USER = "users:delete"
OP_UPDATE_ROLES = "users:update_roles"
OP_SET_ACTIVE = "users:set_status"
OP_SET_LOCK = "users:set_lock"
OP_UPDATE_PASSWORD = "users:update_password"
OP_LIST_ROLES = "roles:list"

ADMIN_ONLY = frozenset({ROLE_ADMIN})

OPERATION_ROLES: dict[str, frozenset[str]] = {
    OP_LIST_USERS: ADMIN_ONLY,
    OP_READ_USER: ADMIN_ONLY,
    OP_UPDATE_USER: ADMIN_ONLY,
    OP_DELETE_USER: ADMIN_ONLY,
    OP_UPDATE_ROLES: ADMIN_ONLY,
    OP_SET_ACTIVE: ADMIN_ONLY,
    OP_SET_LOCK: ADMIN_ONLY,
    OP_UPDATE_PASSWORD: ADMIN_ONLY,
    OP_LIST_ROLES: frozenset({ROLE_ADMIN, ROLE_MANAGER}),
}

SELF_OR_ADMIN_OPERATIONS = frozenset({OP_UPDATE_PASSWORD})


def is_permitted(
    operation: str,
    caller_roles: Iterable[str],
    caller_id: int | None = None,
    owner_id: int | None = None,
) -> bool:
    """Return True if a caller with these roles (and id) may perform operation."""
    allowed = OPERATION_ROLES.get(operation)
    if allowed is None:
        return False
    roles = set(caller_roles)
    if roles & allowed:
        return True
    if operation in SELF_OR_ADMIN_OPERATIONS:
        return caller_id is not None and owner_id is not None and caller_id == owner_id
    return False


def authorize(
    operation: str,
    caller_roles: Iterable[str],
    caller_id: int | None = None,
    owner_id: int | None = None,
) -> None:
    """Raise ForbiddenError unless is_permitted allows the call."""
    roles = list(caller_roles)
    if not is_permitted(operation, roles, caller_id=caller_id, owner_id=owner_id):
        logger.info(
            "Forbidden: operation=%s caller_id=%s roles=%s", operation, caller_id, roles
        )
        raise ForbiddenError(f"Access denied for operation {operation}.")
