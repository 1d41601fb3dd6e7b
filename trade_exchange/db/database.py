"""SQLite connection helpers."""

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


def db_path_from_url(database_url: str) -> str:
    """Extract the file path from a ``sqlite:///`` URL."""
    return database_url.replace("sqlite:///", "", 1)


def ensure_db_directory(db_path: str) -> None:
    """Create the directory holding the database file if needed."""
    db_dir = os.path.dirname(db_path) or "."
    os.makedirs(db_dir, exist_ok=True)
    logger.info("Database directory ensured at %s", db_dir)


def get_connection(db_path: str) -> sqlite3.Connection:
    """Create and return a new SQLite connection with row factory."""
    logger.trace("Opening database connection to %s", db_path)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db(db_path: str) -> Iterator[sqlite3.Connection]:
    """Context manager that yields a database connection and auto-commits/rolls back."""
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
        logger.trace("Database transaction committed")
    except Exception:
        logger.error("Database transaction rolled back", exc_info=True)
        conn.rollback()
        raise
    finally:
        conn.close()
        logger.trace("Database connection closed")
