"""User administration endpoints (admin only, except self-service password change)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.v1.auth import get_current_user, get_store, require_operation
from app.core.config import Settings, get_settings
from app.schemas.auth import CurrentUser
from app.schemas.users import (
    ActiveStatusResponse,
    LockStatusResponse,
    RoleAssignmentResponse,
    SortDirection,
    UpdatePasswordRequest,
    UpdateRolesRequest,
    UpdateUserRequest,
    UserResponse,
    UsersPage,
    to_active_status,
    to_lock_status,
    to_role_assignment,
    to_user_response,
    to_users_page,
)
from app.services import users as users_service
from app.services.authorization import (
    OP_DELETE_USER,
    OP_LIST_USERS,
    OP_READ_USER,
    OP_SET_ACTIVE,
    OP_SET_LOCK,
    OP_UPDATE_PASSWORD,
    OP_UPDATE_ROLES,
    OP_UPDATE_USER,
    authorize,
)
from app.services.credential_store import CredentialStore

router = APIRouter()

Store = Annotated[CredentialStore, Depends(get_store)]


@router.get("", response_model=UsersPage)
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_operation(OP_LIST_USERS))],
    store: Store,
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=users_service.MAX_PAGE_SIZE)] = 20,
    sort_by: str = "id",
    sort_dir: SortDirection = "asc",
) -> UsersPage:
    """List users one page at a time (zero-based page)."""
    users, total = users_service.list_users(
        store, page=page, size=size, sort_by=sort_by, sort_dir=sort_dir
    )
    return to_users_page(users, page=page, size=size, total=total)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    _admin: Annotated[CurrentUser, Depends(require_operation(OP_READ_USER))],
    store: Store,
) -> UserResponse:
    return to_user_response(users_service.get_user(store, user_id))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    _admin: Annotated[CurrentUser, Depends(require_operation(OP_UPDATE_USER))],
    store: Store,
) -> UserResponse:
    return to_user_response(users_service.update_user(store, user_id, body))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    _admin: Annotated[CurrentUser, Depends(require_operation(OP_DELETE_USER))],
    store: Store,
) -> Response:
    users_service.delete_user(store, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{user_id}/roles", response_model=RoleAssignmentResponse)
def update_user_roles(
    user_id: int,
    body: UpdateRolesRequest,
    _admin: Annotated[CurrentUser, Depends(require_operation(OP_UPDATE_ROLES))],
    store: Store,
) -> RoleAssignmentResponse:
    """Replace the user's roles; fails without changes if any role id is unknown."""
    return to_role_assignment(users_service.update_roles(store, user_id, body.role_ids))


@router.put("/{user_id}/status", response_model=ActiveStatusResponse)
def update_user_status(
    user_id: int,
    active: bool,
    _admin: Annotated[CurrentUser, Depends(require_operation(OP_SET_ACTIVE))],
    store: Store,
) -> ActiveStatusResponse:
    return to_active_status(users_service.set_active_status(store, user_id, active))


@router.put("/{user_id}/lock", response_model=LockStatusResponse)
def lock_user(
    user_id: int,
    locked: bool,
    _admin: Annotated[CurrentUser, Depends(require_operation(OP_SET_LOCK))],
    store: Store,
) -> LockStatusResponse:
    """Lock or unlock an account; unlocking also clears its failed login attempts."""
    return to_lock_status(users_service.set_lock_status(store, user_id, locked))


@router.put("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def update_password(
    user_id: int,
    body: UpdatePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    store: Store,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Change a password. Allowed for the account owner or an admin."""
    authorize(
        OP_UPDATE_PASSWORD,
        current_user.roles,
        caller_id=current_user.id,
        owner_id=user_id,
    )
    users_service.update_password(store, user_id, body, settings)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
