"""
Create a user with one canonical role. Run from project root:
  python -m app.scripts.create_user USERNAME EMAIL PASSWORD [role] [--first-name X] [--last-name Y]
Example:
  python -m app.scripts.create_user jdoe jdoe@example.com your-secure-password manager
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
)
from app.models import DEFAULT_ROLES, ROLE_USER, User
from app.services.bootstrap import ensure_default_roles
from app.services.credential_store import CredentialStore
from app.services.errors import AuthServiceError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a user with a canonical role.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=list(DEFAULT_ROLES))
    parser.add_argument("--first-name", default="New")
    parser.add_argument("--last-name", default="User")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        store = CredentialStore(db)
        if store.exists_by_username(username):
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        if store.exists_by_email(args.email):
            print(f"Email '{args.email}' is already in use.", file=sys.stderr)
            return 1
        ensure_default_roles(store)
        role = store.find_role_by_name(args.role)
        user = User(
            username=username,
            email=args.email,
            password_hash=hash_password(args.password, rounds=settings.BCRYPT_ROUNDS),
            first_name=args.first_name,
            last_name=args.last_name,
            is_active=True,
            is_locked=False,
            failed_login_attempts=0,
            roles=[role],
        )
        store.save(user)
        print(f"Created user '{username}' with role '{args.role}'.")
        return 0
    except AuthServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
