"""Shared test configuration and fixtures."""

import logging
from datetime import UTC, datetime

import pytest
import pytest_asyncio

from shelflog.database.store import LibraryStore
from tests.utils import FrozenClock

# Friday 15 March 2024, midday UTC
FROZEN_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def clock():
    """Clock pinned to FROZEN_NOW; advance it explicitly."""
    return FrozenClock(FROZEN_NOW)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "library.db"


@pytest_asyncio.fixture
async def store(db_path):
    """Initialized library store on a temporary database."""
    library_store = LibraryStore(db_path)
    await library_store.init_db()
    yield library_store
    await library_store.close()


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep log files out of the working tree and drop handlers added by setup_logging."""
    monkeypatch.setenv("SHELFLOG_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("SHELFLOG_DB_PATH", raising=False)

    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        if isinstance(handler, logging.FileHandler) and handler not in original_handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(original_level)
