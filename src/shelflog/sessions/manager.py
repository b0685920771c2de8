#!/usr/bin/env python3
"""
Reading Session Manager

Lifecycle of time-boxed reading sessions: start, elapsed time, stop,
discard and binding a finished session to a book.

There is no in-memory notion of "the current session". The open session is
always the row in reading_sessions whose end_time is NULL, so state survives
a restart and is recovered with get_active_session_id().
"""

import logging
import math
from dataclasses import dataclass

from ..common import BookId, Clock, SessionId, format_timestamp, parse_timestamp, utc_now
from ..database.store import LibraryStore
from ..exceptions import NotFoundError, NotStartedError, SessionAlreadyClosedError
from ..status import ReadingState, ReadingStatusCoordinator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadingSession:
    id: SessionId
    book_id: BookId | None
    start_time: str
    end_time: str | None
    duration: int | None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @classmethod
    def from_row(cls, row) -> "ReadingSession":
        return cls(
            id=row["id"],
            book_id=row["book_id"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            duration=row["duration"],
        )


@dataclass(frozen=True)
class EligibleBook:
    """A book a session can be attributed to."""

    id: BookId
    title: str
    status: ReadingState


class SessionManager:
    def __init__(
        self,
        store: LibraryStore,
        status_coordinator: ReadingStatusCoordinator | None = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.clock = clock
        self.status_coordinator = status_coordinator or ReadingStatusCoordinator(store, clock)

    async def get_session(self, session_id: SessionId) -> ReadingSession:
        """Fetch a session row or raise NotFoundError."""
        row = await self.store.query_one(
            "SELECT id, book_id, start_time, end_time, duration FROM reading_sessions WHERE id = ?",
            (session_id,),
        )
        if row is None:
            raise NotFoundError(f"Session {session_id} not found")
        return ReadingSession.from_row(row)

    async def get_active_session_id(self) -> SessionId | None:
        """Return the id of the session with no end_time, or None."""
        row = await self.store.query_one("SELECT id FROM reading_sessions WHERE end_time IS NULL ORDER BY id LIMIT 1")
        return row["id"] if row else None

    async def start_session(self) -> SessionId:
        """
        Start a reading session, or return the one already open.

        The open-session check is repeated against the store on every call.
        """
        async with self.store.transaction():
            existing = await self.get_active_session_id()
            if existing is not None:
                logger.debug(f"Session {existing} already active, reusing it")
                return existing

            session_id = await self.store.insert(
                "reading_sessions",
                {"book_id": None, "start_time": format_timestamp(self.clock()), "end_time": None},
            )

        logger.info(f"Started reading session {session_id}")
        return session_id

    async def get_duration_to_now(self, session_id: SessionId) -> int:
        """
        Elapsed whole seconds since the session started. Does not modify the session.

        Raises:
            NotFoundError: If the session does not exist
            NotStartedError: If the session has no start_time
        """
        row = await self.store.query_one("SELECT start_time FROM reading_sessions WHERE id = ?", (session_id,))
        if row is None:
            raise NotFoundError(f"Session {session_id} not found")
        if row["start_time"] is None:
            raise NotStartedError(f"Session {session_id} has not been started")

        elapsed = self.clock() - parse_timestamp(row["start_time"])
        return math.floor(elapsed.total_seconds())

    async def end_session(self, session_id: SessionId) -> int:
        """
        Close a session and return its duration in seconds.

        Raises:
            NotFoundError: If the session does not exist
            SessionAlreadyClosedError: If the session already has an end_time
        """
        async with self.store.transaction():
            session = await self.get_session(session_id)
            if not session.is_open:
                raise SessionAlreadyClosedError(f"Session {session_id} already ended at {session.end_time}")

            await self.store.update(
                "reading_sessions",
                {"id": session_id},
                {"end_time": format_timestamp(self.clock())},
            )
            closed = await self.get_session(session_id)

        duration = closed.duration or 0
        logger.info(f"Ended reading session {session_id} after {duration}s")
        return duration

    async def delete_session(self, session_id: SessionId) -> None:
        """Discard a session, open or closed. Unknown ids are ignored."""
        await self.store.delete("reading_sessions", {"id": session_id})
        logger.info(f"Discarded reading session {session_id}")

    async def bind_session_to_book(self, session_id: SessionId, book_id: BookId, mark_completed: bool) -> None:
        """
        Attribute a session to a book and move the book to reading or completed.

        Both writes happen in one transaction.

        Raises:
            NotFoundError: If the session does not exist
        """
        target = ReadingState.COMPLETED if mark_completed else ReadingState.READING

        async with self.store.transaction():
            affected = await self.store.update("reading_sessions", {"id": session_id}, {"book_id": book_id})
            if affected == 0:
                raise NotFoundError(f"Session {session_id} not found")
            await self.status_coordinator.set_status(book_id, target)

        logger.info(f"Session {session_id} bound to book {book_id} ({target})")

    async def finish_session(self, session_id: SessionId, book_id: BookId, mark_completed: bool) -> int:
        """
        End a session and bind it to a book as a single transaction.

        Returns:
            The closed session's duration in seconds
        """
        async with self.store.transaction():
            duration = await self.end_session(session_id)
            await self.bind_session_to_book(session_id, book_id, mark_completed)
        return duration

    async def get_eligible_books(self) -> list[EligibleBook]:
        """Books in to_read or reading state, ordered by title."""
        rows = await self.store.query_all(
            """
            SELECT b.id, b.title, rs.status
            FROM books b
            JOIN reading_status rs ON b.id = rs.book_id
            WHERE rs.status IN ('to_read', 'reading')
            ORDER BY b.title
            """
        )
        return [EligibleBook(id=row["id"], title=row["title"], status=ReadingState(row["status"])) for row in rows]
