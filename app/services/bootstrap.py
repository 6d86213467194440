"""Startup bootstrap: canonical roles and the first administrator account."""

import logging
from typing import TYPE_CHECKING

from app.core.security import hash_password
from app.models import DEFAULT_ROLES, ROLE_ADMIN, Role, User
from app.services.credential_store import CredentialStore
from app.services.errors import NotFoundError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def ensure_default_roles(store: CredentialStore) -> list[str]:
    """Create every canonical role that is missing. Returns the names created."""
    created: list[str] = []
    for name, description in DEFAULT_ROLES.items():
        if store.exists_role_by_name(name):
            continue
        store.save_role(Role(name=name, description=description, is_default=True))
        created.append(name)
    if created:
        logger.info("Created default roles: %s", ", ".join(created))
    return created


def create_initial_admin(store: CredentialStore, settings: "Settings") -> User | None:
    """
    Create the administrator account when there are no users at all.

    Returns the new user, or None if any account already exists.
    """
    if store.count() > 0:
        return None

    admin_role = store.find_role_by_name(ROLE_ADMIN)
    if admin_role is None:
        raise NotFoundError("Admin role not found.")

    user = User(
        username=settings.BOOTSTRAP_ADMIN_USERNAME,
        email=settings.BOOTSTRAP_ADMIN_EMAIL,
        password_hash=hash_password(
            settings.BOOTSTRAP_ADMIN_PASSWORD.get_secret_value(),
            rounds=settings.BCRYPT_ROUNDS,
        ),
        first_name="System",
        last_name="Administrator",
        phone_number="+49123456789",
        is_active=True,
        is_locked=False,
        failed_login_attempts=0,
        roles=[admin_role],
    )
    user = store.save(user)
    logger.warning(
        "Created initial administrator username=%s; change its password.",
        user.username,
    )
    return user


def run_bootstrap(store: CredentialStore, settings: "Settings") -> None:
    """Idempotent: safe to run on every startup."""
    logger.info("Initializing default roles...")
    ensure_default_roles(store)
    logger.info("Creating initial admin user if not exists...")
    create_initial_admin(store, settings)
