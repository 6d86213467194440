"""Pydantic request/response schemas."""

from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from app.schemas.health import HealthResponse
from app.schemas.users import (
    ActiveStatusResponse,
    LockStatusResponse,
    RoleAssignmentResponse,
    RoleResponse,
    RolesListResponse,
    UpdatePasswordRequest,
    UpdateRolesRequest,
    UpdateUserRequest,
    UserResponse,
    UsersPage,
)

__all__ = [
    "ActiveStatusResponse",
    "CurrentUser",
    "HealthResponse",
    "LockStatusResponse",
    "LoginRequest",
    "RefreshTokenRequest",
    "RegisterRequest",
    "RoleAssignmentResponse",
    "RoleResponse",
    "RolesListResponse",
    "TokenResponse",
    "UpdatePasswordRequest",
    "UpdateRolesRequest",
    "UpdateUserRequest",
    "UserResponse",
    "UsersPage",
]
