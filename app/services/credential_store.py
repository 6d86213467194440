"""
Credential store: user and role persistence over a SQLAlchemy session.

Every database failure is translated here: unique-constraint violations become
DuplicateIdentityError and anything else from SQLAlchemy becomes
StoreUnavailableError. Nothing is retried.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Role, User
from app.services.errors import DuplicateIdentityError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Columns list_users may sort by.
SORTABLE_USER_FIELDS = ("id", "username", "email", "created_at", "last_login")


class CredentialStore:
    """Lookup, existence checks and upserts for users and roles."""

    def __init__(self, session: Session) -> None:
        self._db = session

    @contextmanager
    def _translate_errors(
        self,
        action: str,
        duplicate_message: str = "Username or email already exists.",
    ) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self._db.rollback()
            logger.info("Uniqueness violation during %s", action)
            raise DuplicateIdentityError(duplicate_message) from e
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error("Credential store failure during %s: %s", action, e)
            raise StoreUnavailableError() from e

    def rollback(self) -> None:
        with self._translate_errors("rollback"):
            self._db.rollback()

    # Users

    def find_by_username(self, username: str, for_update: bool = False) -> User | None:
        """
        Return the user with this username, or None.

        With for_update the row is locked until the next commit or rollback so
        concurrent lockout transitions on the same account serialize.
        """
        with self._translate_errors("find_by_username"):
            query = self._db.query(User).filter(User.username == username)
            if for_update:
                query = query.with_for_update().populate_existing()
            return query.first()

    def find_by_email(self, email: str) -> User | None:
        with self._translate_errors("find_by_email"):
            return self._db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: int, for_update: bool = False) -> User | None:
        with self._translate_errors("find_by_id"):
            query = self._db.query(User).filter(User.id == user_id)
            if for_update:
                query = query.with_for_update().populate_existing()
            return query.first()

    def exists_by_username(self, username: str) -> bool:
        with self._translate_errors("exists_by_username"):
            return (
                self._db.query(User.id).filter(User.username == username).first()
                is not None
            )

    def exists_by_email(self, email: str) -> bool:
        with self._translate_errors("exists_by_email"):
            return self._db.query(User.id).filter(User.email == email).first() is not None

    def save(self, user: User) -> User:
        """Insert or update user and commit; returns the refreshed instance."""
        with self._translate_errors("save"):
            self._db.add(user)
            self._db.commit()
            self._db.refresh(user)
            return user

    def delete_by_id(self, user_id: int) -> bool:
        """Hard-delete a user and its role links. Returns False if no such user."""
        with self._translate_errors("delete_by_id"):
            user = self._db.get(User, user_id)
            if user is None:
                return False
            self._db.delete(user)
            self._db.commit()
            return True

    def count(self) -> int:
        with self._translate_errors("count"):
            return self._db.query(func.count(User.id)).scalar() or 0

    def list_users(
        self,
        offset: int,
        limit: int,
        sort_by: str = "id",
        descending: bool = False,
    ) -> tuple[list[User], int]:
        """Return one page of users and the total user count."""
        if sort_by not in SORTABLE_USER_FIELDS:
            raise ValueError(f"Cannot sort users by {sort_by!r}")
        column = getattr(User, sort_by)
        order = column.desc() if descending else column.asc()
        with self._translate_errors("list_users"):
            total = self._db.query(func.count(User.id)).scalar() or 0
            users = (
                self._db.query(User)
                .order_by(order, User.id.asc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return users, total

    # Roles

    def find_role_by_name(self, name: str) -> Role | None:
        with self._translate_errors("find_role_by_name"):
            return self._db.query(Role).filter(Role.name == name).first()

    def exists_role_by_name(self, name: str) -> bool:
        with self._translate_errors("exists_role_by_name"):
            return self._db.query(Role.id).filter(Role.name == name).first() is not None

    def find_roles_by_ids(self, role_ids: list[int]) -> list[Role]:
        if not role_ids:
            return []
        with self._translate_errors("find_roles_by_ids"):
            return (
                self._db.query(Role)
                .filter(Role.id.in_(role_ids))
                .order_by(Role.id)
                .all()
            )

    def list_roles(self) -> list[Role]:
        with self._translate_errors("list_roles"):
            return self._db.query(Role).order_by(Role.id).all()

    def save_role(self, role: Role) -> Role:
        with self._translate_errors("save_role", "Role already exists."):
            self._db.add(role)
            self._db.commit()
            self._db.refresh(role)
            return role
