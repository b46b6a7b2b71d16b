"""Declarative Base with a constraint naming convention.

Invariants:
    - Every model inherits from Base; Base.metadata is what alembic compares against
    - Unnamed keys and unique constraints get deterministic names, so migrations
      can drop them on PostgreSQL and SQLite alike
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
