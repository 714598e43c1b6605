"""Database layer for platecount application."""

from platecount.database.base import Database
from platecount.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
