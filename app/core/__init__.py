"""Settings, database session and credential primitives shared by the auth service."""

from app.core.config import Settings, get_settings, settings
from app.core.database import SessionLocal, get_db
from app.core.security import hash_password, verify_password

__all__ = [
    "Settings",
    "SessionLocal",
    "get_db",
    "get_settings",
    "hash_password",
    "settings",
    "verify_password",
]
