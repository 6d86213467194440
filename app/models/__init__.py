"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.user import (
    DEFAULT_ROLES,
    ROLE_ADMIN,
    ROLE_GUEST,
    ROLE_MANAGER,
    ROLE_USER,
    Role,
    User,
    user_roles,
)

__all__ = [
    "Base",
    "DEFAULT_ROLES",
    "ROLE_ADMIN",
    "ROLE_GUEST",
    "ROLE_MANAGER",
    "ROLE_USER",
    "Role",
    "User",
    "user_roles",
]
