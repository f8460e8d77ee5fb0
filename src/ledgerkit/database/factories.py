"""Database factory functions for creating database instances."""

from pathlib import Path
from typing import Optional

from ledgerkit.config import Settings
from ledgerkit.database.memory import InMemoryDatabase
from ledgerkit.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, uses the
            LEDGERKIT_DB_PATH environment variable, then defaults to
            ~/.ledgerkit/ledgerkit.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = Settings.from_env().db_path

    Path(database_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
    database_url = f"sqlite:///{Path(database_path).expanduser()}"
    return SQLAlchemyDatabase(database_url)


def create_memory_database() -> InMemoryDatabase:
    """Create an empty in-memory database."""
    return InMemoryDatabase()
