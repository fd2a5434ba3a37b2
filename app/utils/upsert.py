from typing import Callable

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def dialect_insert(db: Session) -> Callable:
    """
    Return the dialect-specific insert() for the session's bind.

    Both variants support on_conflict_do_update / on_conflict_do_nothing,
    which turn "look up, then write" into a single atomic statement.
    """
    dialect_name = db.get_bind().dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    raise ValueError(f"Upsert is not supported on dialect {dialect_name!r}")
