"""
Centralized database connection utilities with consistent WAL mode configuration.
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import aiosqlite

CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA temp_store=memory",
    "PRAGMA busy_timeout=5000",  # Wait up to 5 seconds for locks
    "PRAGMA foreign_keys=ON",
)


def _configure_connection(conn: sqlite3.Connection) -> None:
    """Configure database connection with WAL mode and foreign key enforcement."""
    for pragma in CONNECTION_PRAGMAS:
        conn.execute(pragma)


async def configure_async_connection(conn: aiosqlite.Connection) -> None:
    """Async counterpart of _configure_connection."""
    for pragma in CONNECTION_PRAGMAS:
        await conn.execute(pragma)


@contextmanager
def connect_sync(db_path: str | Path, timeout: float = 30.0) -> Generator[sqlite3.Connection, None, None]:
    """Create a synchronous database connection with WAL mode enabled."""
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    try:
        _configure_connection(conn)
        conn.row_factory = sqlite3.Row
        with conn:
            yield conn
    finally:
        conn.close()

