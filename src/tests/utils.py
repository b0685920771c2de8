#!/usr/bin/env python3
"""Shared test utilities for the shelflog test suite."""

from datetime import datetime, timedelta

from shelflog.catalog import BookCatalog
from shelflog.common import BookId, format_timestamp
from shelflog.database.store import LibraryStore


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        self.now += timedelta(seconds=seconds, **kwargs)
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


async def add_book(
    store: LibraryStore,
    title: str,
    authors: tuple[str, ...] = (),
    genres: tuple[str, ...] = (),
) -> BookId:
    return await BookCatalog(store).add_book(title, authors=authors, genres=genres)


async def set_book_status(
    store: LibraryStore,
    book_id: BookId,
    status: str,
    start_time: str | None = None,
    end_time: str | None = None,
) -> None:
    """Write a reading_status row directly, bypassing the state machine."""
    await store.update(
        "reading_status",
        {"book_id": book_id},
        {"status": status, "start_time": start_time, "end_time": end_time},
    )


async def add_session(
    store: LibraryStore,
    start: datetime | str,
    end: datetime | str | None = None,
    book_id: BookId | None = None,
) -> int:
    """Insert a reading session with explicit timestamps."""
    if isinstance(start, datetime):
        start = format_timestamp(start)
    if isinstance(end, datetime):
        end = format_timestamp(end)
    return await store.insert("reading_sessions", {"book_id": book_id, "start_time": start, "end_time": end})


async def add_rating(store: LibraryStore, book_id: BookId, rating: int, rated_at: str, comment: str | None = None):
    await store.insert("ratings", {"book_id": book_id, "rating": rating, "comment": comment, "rated_at": rated_at})
