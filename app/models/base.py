"""Declarative base shared by the users and roles tables."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Index names line up with the alembic migration (ix_users_username, ix_roles_name, ...).
NAMING_CONVENTION = {"ix": "ix_%(table_name)s_%(column_0_name)s"}


class Base(DeclarativeBase):
    """Declarative base for the auth models; carries the index naming convention."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
