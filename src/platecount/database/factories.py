"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from platecount.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DEFAULT_DB_DIR = Path.home() / ".platecount"
DEFAULT_DB_NAME = "platecount.db"


def default_database_path() -> Path:
    """Per-user SQLite file used when nothing else is configured."""
    DEFAULT_DB_DIR.mkdir(exist_ok=True)
    return DEFAULT_DB_DIR / DEFAULT_DB_NAME


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to the SQLite file. Falls back to PLATECOUNT_DB_PATH,
            then to ~/.platecount/platecount.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = database_path or os.environ.get("PLATECOUNT_DB_PATH") or default_database_path()
    return SQLAlchemyDatabase(f"sqlite:///{path}")


def create_database(database_url: Optional[str] = None, database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a database from a full SQLAlchemy URL, falling back to SQLite.

    A shared server database (PostgreSQL, MySQL ...) is what lets several
    ushers' devices work on the same count; SQLite suits one machine.

    Args:
        database_url: SQLAlchemy URL; if None, PLATECOUNT_DATABASE_URL is checked
        database_path: SQLite file used when no URL is configured
    """
    database_url = database_url or os.environ.get("PLATECOUNT_DATABASE_URL")
    if database_url:
        logger.debug("Using database url=%s", database_url.split("@")[-1])
        return SQLAlchemyDatabase(database_url)
    return create_sqlite_database(database_path=database_path)
