#!/usr/bin/env python3
"""
Tests for database retry and validation helpers.
"""

import sqlite3

import pytest
from tenacity import wait_none

from shelflog.database.database_utils import (
    is_database_locked_error,
    retry_database_operation,
    validate_database_file,
)


def test_is_database_locked_error():
    assert is_database_locked_error(sqlite3.OperationalError("database is locked"))
    assert is_database_locked_error(sqlite3.OperationalError("Database is LOCKED"))
    assert not is_database_locked_error(sqlite3.OperationalError("no such table: books"))
    assert not is_database_locked_error(ValueError("database is locked"))


class TestRetryDatabaseOperation:
    @pytest.mark.asyncio
    async def test_retries_lock_then_succeeds(self):
        calls = []

        @retry_database_operation
        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise sqlite3.OperationalError("database is locked")
            return "ok"

        assert await flaky() == "ok"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_other_errors_raise_immediately(self):
        calls = []

        @retry_database_operation
        async def broken():
            calls.append(1)
            raise sqlite3.OperationalError("no such table: books")

        with pytest.raises(sqlite3.OperationalError, match="no such table"):
            await broken()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_five_attempts(self):
        calls = []

        @retry_database_operation
        async def locked():
            calls.append(1)
            raise sqlite3.OperationalError("database is locked")

        with pytest.raises(sqlite3.OperationalError, match="locked"):
            await locked.retry_with(wait=wait_none())()
        assert len(calls) == 5


class TestValidateDatabaseFile:
    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_database_file(tmp_path / "missing.db")

        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().out

    def test_missing_tables(self, tmp_path, capsys):
        db_path = tmp_path / "other.db"
        with sqlite3.connect(db_path) as conn:
            conn.execute("CREATE TABLE unrelated (id INTEGER)")
        conn.close()

        with pytest.raises(SystemExit):
            validate_database_file(db_path)

        assert "missing required tables" in capsys.readouterr().out

    def test_not_a_database(self, tmp_path, capsys):
        db_path = tmp_path / "notes.db"
        db_path.write_text("not sqlite at all, just some text that is long enough to fill a header")

        with pytest.raises(SystemExit):
            validate_database_file(db_path)

        assert "Cannot read SQLite database" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_valid_library(self, store, db_path):
        validate_database_file(db_path)
