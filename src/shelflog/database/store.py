#!/usr/bin/env python3
"""
Library Store

Persistent aiosqlite-backed store for the library database. Services talk to
the database only through this class.
"""

import asyncio
import contextvars
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from .connections import configure_async_connection
from .database_utils import retry_database_operation

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"

TABLES = frozenset(
    {
        "authors",
        "books",
        "book_authors",
        "genres",
        "book_genres",
        "reading_status",
        "reading_sessions",
        "ratings",
        "favorites",
        "wishlist",
    }
)


def _check_table(table: str) -> None:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")


def _check_columns(columns: Iterable[str]) -> None:
    for column in columns:
        if not column.isidentifier():
            raise ValueError(f"Invalid column name: {column!r}")


def _where_clause(where: Mapping[str, Any]) -> tuple[str, tuple]:
    if not where:
        raise ValueError("A predicate is required")
    _check_columns(where)
    clause = " AND ".join(f"{column} = ?" for column in where)
    return clause, tuple(where.values())


class LibraryStore:
    """
    SQLite-based library store.

    Holds one persistent connection. Writes inside transaction() are committed
    or rolled back together. One task owns the transaction at a time; writes
    from other tasks wait for it to finish and are then committed on their own.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._initialized = False
        self._persistent_conn: aiosqlite.Connection | None = None
        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._owns_transaction: contextvars.ContextVar[bool] = contextvars.ContextVar(
            f"shelflog_transaction_{id(self)}", default=False
        )

    async def initialize(self) -> None:
        """Open and configure the persistent connection."""
        if self._persistent_conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._persistent_conn = await aiosqlite.connect(str(self.db_path))
            self._persistent_conn.row_factory = aiosqlite.Row
            await configure_async_connection(self._persistent_conn)

    async def __aenter__(self):
        await self.init_db()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_connection(self) -> aiosqlite.Connection:
        await self.initialize()
        if not self._persistent_conn:
            raise RuntimeError("Failed to initialize database connection")
        return self._persistent_conn

    async def init_db(self) -> None:
        """Initialize database schema if not exists."""
        if self._initialized:
            return

        if not SCHEMA_FILE.exists():
            raise FileNotFoundError(f"Database schema file not found: {SCHEMA_FILE}")

        async with self._init_lock:
            if self._initialized:
                return
            conn = await self._ensure_connection()
            await conn.executescript(SCHEMA_FILE.read_text(encoding="utf-8"))
            await conn.commit()
            self._initialized = True
        logger.debug(f"Library schema ready in {self.db_path}")

    async def close(self) -> None:
        """Close the persistent connection."""
        if self._persistent_conn:
            await self._persistent_conn.close()
            self._persistent_conn = None
        self._initialized = False

    @property
    def in_transaction(self) -> bool:
        """True when the calling task owns the open transaction."""
        return self._owns_transaction.get()

    @retry_database_operation
    async def _begin(self, conn: aiosqlite.Connection) -> None:
        await conn.execute("BEGIN IMMEDIATE")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["LibraryStore"]:
        """
        Group several writes into one transaction.

        Nested use by the owning task joins the outermost transaction. Other
        tasks wait until it has been committed or rolled back.
        """
        await self.init_db()
        conn = await self._ensure_connection()

        if self.in_transaction:
            yield self
            return

        async with self._write_lock:
            await self._begin(conn)
            token = self._owns_transaction.set(True)
            try:
                yield self
            except BaseException:
                logger.debug("Rolling back transaction")
                await conn.rollback()
                raise
            else:
                await conn.commit()
            finally:
                self._owns_transaction.reset(token)

    async def _execute_query(self, query: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Execute query using persistent connection."""
        await self.init_db()
        conn = await self._ensure_connection()
        return await conn.execute(query, params)

    @retry_database_operation
    async def _execute_query_with_commit(self, query: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Execute a write, committing unless the calling task owns a transaction."""
        await self.init_db()
        conn = await self._ensure_connection()
        if self.in_transaction:
            return await conn.execute(query, params)

        async with self._write_lock:
            cursor = await conn.execute(query, params)
            await conn.commit()
        return cursor

    async def execute(self, query: str, params: tuple = ()) -> int:
        """Execute an arbitrary write statement and return the affected row count."""
        cursor = await self._execute_query_with_commit(query, params)
        return cursor.rowcount

    async def insert(self, table: str, row: Mapping[str, Any]) -> int:
        """Insert a row and return its generated id."""
        _check_table(table)
        _check_columns(row)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        cursor = await self._execute_query_with_commit(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", tuple(row.values())
        )
        return cursor.lastrowid or 0

    async def update(self, table: str, where: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        """Apply patch to rows matching where; return the affected row count."""
        _check_table(table)
        if not patch:
            raise ValueError("Nothing to update")
        _check_columns(patch)
        set_clause = ", ".join(f"{column} = ?" for column in patch)
        where_clause, where_params = _where_clause(where)
        cursor = await self._execute_query_with_commit(
            f"UPDATE {table} SET {set_clause} WHERE {where_clause}", tuple(patch.values()) + where_params
        )
        return cursor.rowcount

    async def delete(self, table: str, where: Mapping[str, Any]) -> None:
        """Delete rows matching where. Missing rows are not an error."""
        _check_table(table)
        where_clause, where_params = _where_clause(where)
        await self._execute_query_with_commit(f"DELETE FROM {table} WHERE {where_clause}", where_params)

    async def query_one(self, query: str, params: tuple = ()) -> aiosqlite.Row | None:
        cursor = await self._execute_query(query, params)
        return await cursor.fetchone()

    async def query_all(self, query: str, params: tuple = ()) -> list[aiosqlite.Row]:
        cursor = await self._execute_query(query, params)
        return list(await cursor.fetchall())

    async def count(self, query: str, params: tuple = ()) -> int:
        """Run a single-value aggregate query, treating NULL as 0."""
        row = await self.query_one(query, params)
        if row is None or row[0] is None:
            return 0
        return int(row[0])
