#!/usr/bin/env python3
"""
Reading Status Coordinator

Applies status transitions (to_read, reading, completed) to a book's
reading_status row together with the start/end timestamp bookkeeping.
Every transition is accepted; only the timestamps differ per target state.
"""

import logging
from dataclasses import dataclass, replace
from enum import StrEnum

from ..common import BookId, Clock, format_timestamp, utc_now
from ..database.store import LibraryStore

logger = logging.getLogger(__name__)


class ReadingState(StrEnum):
    TO_READ = "to_read"
    READING = "reading"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ReadingStatusRecord:
    """One reading_status row."""

    book_id: BookId
    status: ReadingState
    start_time: str | None = None
    end_time: str | None = None

    @classmethod
    def from_row(cls, row) -> "ReadingStatusRecord":
        return cls(
            book_id=row["book_id"],
            status=ReadingState(row["status"]),
            start_time=row["start_time"],
            end_time=row["end_time"],
        )


def next_status_record(current: ReadingStatusRecord, requested: ReadingState, now: str) -> ReadingStatusRecord:
    """
    Compute the row that results from moving current to the requested state.

    - reading: start_time is set only if it was never set; end_time is kept.
    - completed: end_time is always refreshed to now.
    - to_read: both timestamps are cleared.
    """
    match requested:
        case ReadingState.READING:
            return replace(current, status=requested, start_time=current.start_time or now)
        case ReadingState.COMPLETED:
            return replace(current, status=requested, end_time=now)
        case ReadingState.TO_READ:
            return replace(current, status=requested, start_time=None, end_time=None)


class ReadingStatusCoordinator:
    """Sole writer of the reading_status table."""

    def __init__(self, store: LibraryStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    async def get_status(self, book_id: BookId) -> ReadingStatusRecord | None:
        row = await self.store.query_one(
            "SELECT book_id, status, start_time, end_time FROM reading_status WHERE book_id = ?",
            (book_id,),
        )
        return ReadingStatusRecord.from_row(row) if row else None

    async def set_status(self, book_id: BookId, status: ReadingState | str) -> bool:
        """
        Move a book to a new reading status.

        Args:
            book_id: Book whose status changes
            status: Target state; plain strings must name a ReadingState

        Returns:
            True if the book's row was updated, False if the book has no status row

        Raises:
            ValueError: If status is not a known reading state
        """
        requested = ReadingState(status)

        async with self.store.transaction():
            current = await self.get_status(book_id)
            if current is None:
                logger.warning(f"No reading status for book {book_id}, nothing to update")
                return False

            updated = next_status_record(current, requested, format_timestamp(self.clock()))
            affected = await self.store.update(
                "reading_status",
                {"book_id": book_id},
                {"status": str(updated.status), "start_time": updated.start_time, "end_time": updated.end_time},
            )

        logger.debug(f"Book {book_id}: {current.status} -> {updated.status}")
        return affected > 0
