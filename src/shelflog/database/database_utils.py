#!/usr/bin/env python3
"""
Database utility functions for shelflog.

Contains shared database validation and retry helpers.
"""

import logging
import sqlite3
import sys
from functools import wraps
from pathlib import Path

import aiosqlite
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from . import connect_sync

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("books", "reading_status", "reading_sessions", "ratings")


def is_database_locked_error(error: BaseException) -> bool:
    """True for sqlite3/aiosqlite OperationalErrors caused by a held lock."""
    return isinstance(error, sqlite3.OperationalError | aiosqlite.OperationalError) and (
        "database is locked" in str(error).lower()
    )


def retry_database_operation(func):
    """
    Decorator to retry database operations that fail due to database locks.

    Retries both sqlite3.OperationalError and aiosqlite.OperationalError with
    "database is locked" message up to 5 times with exponential backoff.
    Any other error is raised on the first attempt.
    """

    @retry(
        stop=stop_after_attempt(5),
        retry=retry_if_exception(is_database_locked_error),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2.0),
        reraise=True,
    )
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (sqlite3.OperationalError, aiosqlite.OperationalError) as e:
            if is_database_locked_error(e):
                logger.warning(f"Database lock detected in {func.__name__}, retrying... ({str(e)})")
            raise

    return wrapper


def validate_database_file(db_path: str | Path, check_tables: bool = True) -> None:
    """
    Validate that the database file exists and is a valid shelflog database.

    Args:
        db_path: Path to the SQLite database file
        check_tables: Whether to validate that required tables exist

    Raises:
        SystemExit: If the database file is invalid or inaccessible
    """
    db_file = Path(db_path)

    if not db_file.exists():
        print(f"❌ Error: Database file does not exist: {db_path}")
        print("\nCreate it by adding a first book:")
        print("shelflog books add --title <title> --db-path <path>")
        sys.exit(1)

    try:
        with connect_sync(db_file) as conn:
            cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            table_names = {row[0] for row in cursor.fetchall()}

            if check_tables:
                missing_tables = [table for table in REQUIRED_TABLES if table not in table_names]
                if missing_tables:
                    print(f"❌ Error: Database is missing required tables: {missing_tables}")
                    print(f"Database file: {db_path}")
                    print("This doesn't appear to be a shelflog library database.")
                    sys.exit(1)

            logger.debug(f"Using database: {db_path}")

    except sqlite3.Error as e:
        print(f"❌ Error: Cannot read SQLite database: {e}")
        print(f"Database file: {db_path}")
        print("The file may be corrupted or not a valid SQLite database.")
        sys.exit(1)
