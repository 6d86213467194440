"""Schemas for user administration, plus the projections from ORM users into them."""

import math
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from app.models import Role, User


class UserResponse(BaseModel):
    """Full user profile (never includes the password hash)."""

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone_number: str | None = None
    is_active: bool
    is_locked: bool
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    roles: list[str]


class UsersPage(BaseModel):
    """One page of users for GET /users."""

    content: list[UserResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool


class UpdateUserRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    first_name: str | None = Field(default=None, min_length=2, max_length=50)
    last_name: str | None = Field(default=None, min_length=2, max_length=50)
    email: EmailStr | None = None
    phone_number: str | None = Field(default=None, min_length=10, max_length=20)


class UpdatePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)


class UpdateRolesRequest(BaseModel):
    role_ids: list[int] = Field(..., min_length=1, description="Replacement role set")


class RoleAssignmentResponse(BaseModel):
    id: int
    username: str
    email: str
    roles: list[str]


class LockStatusResponse(BaseModel):
    id: int
    username: str
    is_locked: bool


class ActiveStatusResponse(BaseModel):
    id: int
    username: str
    is_active: bool


class RoleResponse(BaseModel):
    id: int
    name: str
    description: str
    is_default: bool


class RolesListResponse(BaseModel):
    roles: list[RoleResponse]


SortDirection = Literal["asc", "desc"]


def to_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        phone_number=user.phone_number,
        is_active=bool(user.is_active),
        is_locked=bool(user.is_locked),
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
        roles=user.role_names,
    )


def to_role_assignment(user: User) -> RoleAssignmentResponse:
    return RoleAssignmentResponse(
        id=user.id, username=user.username, email=user.email, roles=user.role_names
    )


def to_lock_status(user: User) -> LockStatusResponse:
    return LockStatusResponse(
        id=user.id, username=user.username, is_locked=bool(user.is_locked)
    )


def to_active_status(user: User) -> ActiveStatusResponse:
    return ActiveStatusResponse(
        id=user.id, username=user.username, is_active=bool(user.is_active)
    )


def to_role_response(role: Role) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        name=role.name,
        description=role.description,
        is_default=bool(role.is_default),
    )


def to_users_page(users: list[User], page: int, size: int, total: int) -> UsersPage:
    """Wrap one page of users with paging metadata (page is zero-based)."""
    total_pages = math.ceil(total / size) if size else 0
    return UsersPage(
        content=[to_user_response(u) for u in users],
        page=page,
        size=size,
        total_elements=total,
        total_pages=total_pages,
        first=page == 0,
        last=page >= total_pages - 1,
    )
