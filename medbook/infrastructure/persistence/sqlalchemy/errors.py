"""Reading PostgreSQL error details off SQLAlchemy DBAPI errors.

asyncpg errors reach us wrapped by the SQLAlchemy adapter, psycopg ones directly,
so both the adapter's ``sqlstate`` and psycopg's ``pgcode``/``diag`` are checked.
"""
from typing import Optional

from sqlalchemy.exc import DBAPIError

UNDEFINED_TABLE = "42P01"
UNIQUE_VIOLATION = "23505"


def sqlstate(error: DBAPIError) -> Optional[str]:
    orig = getattr(error, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def constraint_name(error: DBAPIError) -> Optional[str]:
    orig = getattr(error, "orig", None)
    for source in (orig, getattr(orig, "__cause__", None), getattr(orig, "diag", None)):
        name = getattr(source, "constraint_name", None)
        if name:
            return name
    return None


def is_unique_violation_on(error: DBAPIError, column: str, dialect: str) -> bool:
    """True when ``error`` is a unique-key failure on ``column``.

    PostgreSQL is matched on sqlstate plus the violated constraint's name. SQLite
    reports neither, so its message ("UNIQUE constraint failed: table.column") is used.
    """
    if dialect == "sqlite":
        message = str(getattr(error, "orig", error)).lower()
        return "unique" in message and column in message
    if sqlstate(error) != UNIQUE_VIOLATION:
        return False
    name = constraint_name(error)
    return bool(name) and column in name.lower()
