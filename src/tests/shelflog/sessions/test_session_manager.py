#!/usr/bin/env python3
"""
Tests for the reading session lifecycle.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from shelflog.database.store import LibraryStore
from shelflog.exceptions import NotFoundError, NotStartedError, SessionAlreadyClosedError
from shelflog.sessions import SessionManager
from shelflog.status import ReadingState, ReadingStatusCoordinator
from tests.utils import add_book, add_session, set_book_status


@pytest.fixture
def manager(store, clock):
    return SessionManager(store, clock=clock)


class TestStartSession:
    @pytest.mark.asyncio
    async def test_start_creates_open_session(self, manager, store):
        session_id = await manager.start_session()

        session = await manager.get_session(session_id)
        assert session.is_open
        assert session.book_id is None
        assert session.start_time == "2024-03-15 12:00:00"
        assert session.duration is None

    @pytest.mark.asyncio
    async def test_start_is_idempotent_while_open(self, manager, store):
        first = await manager.start_session()
        second = await manager.start_session()

        assert first == second
        assert await store.count("SELECT COUNT(*) FROM reading_sessions WHERE end_time IS NULL") == 1

    @pytest.mark.asyncio
    async def test_start_after_end_creates_new_session(self, manager, clock):
        first = await manager.start_session()
        clock.advance(60)
        await manager.end_session(first)

        second = await manager.start_session()

        assert second != first
        assert await manager.get_active_session_id() == second

    @pytest.mark.asyncio
    async def test_open_session_survives_restart(self, manager, store, db_path, clock):
        session_id = await manager.start_session()
        await store.close()

        async with LibraryStore(db_path) as reopened:
            restarted = SessionManager(reopened, clock=clock)
            assert await restarted.get_active_session_id() == session_id
            assert await restarted.start_session() == session_id


class TestActiveSession:
    @pytest.mark.asyncio
    async def test_no_active_session(self, manager):
        assert await manager.get_active_session_id() is None

    @pytest.mark.asyncio
    async def test_closed_sessions_are_not_active(self, manager, store):
        await add_session(store, "2024-03-14 10:00:00", "2024-03-14 10:30:00")
        assert await manager.get_active_session_id() is None


class TestDurationToNow:
    @pytest.mark.asyncio
    async def test_elapsed_seconds(self, manager, clock):
        session_id = await manager.start_session()
        clock.advance(90)

        assert await manager.get_duration_to_now(session_id) == 90
        # Read-only: the session stays open
        assert (await manager.get_session(session_id)).is_open

    @pytest.mark.asyncio
    async def test_partial_seconds_are_floored(self, manager, clock):
        session_id = await manager.start_session()
        clock.advance(59.9)

        assert await manager.get_duration_to_now(session_id) == 59

    @pytest.mark.asyncio
    async def test_unknown_session(self, manager):
        with pytest.raises(NotFoundError):
            await manager.get_duration_to_now(999)

    @pytest.mark.asyncio
    async def test_session_without_start_time(self, clock):
        # The schema forbids a NULL start_time, so the row comes from a mocked store
        mock_store = AsyncMock()
        mock_store.query_one.return_value = {"start_time": None}
        manager = SessionManager(mock_store, status_coordinator=AsyncMock(), clock=clock)

        with pytest.raises(NotStartedError):
            await manager.get_duration_to_now(1)


class TestEndSession:
    @pytest.mark.asyncio
    async def test_end_returns_duration(self, manager, clock):
        session_id = await manager.start_session()
        clock.advance(90)

        assert await manager.end_session(session_id) == 90

        session = await manager.get_session(session_id)
        assert session.end_time == "2024-03-15 12:01:30"
        assert session.duration == 90
        assert await manager.get_active_session_id() is None

    @pytest.mark.asyncio
    async def test_end_immediately_gives_zero(self, manager):
        session_id = await manager.start_session()
        assert await manager.end_session(session_id) == 0

    @pytest.mark.asyncio
    async def test_end_twice_raises(self, manager, clock):
        session_id = await manager.start_session()
        clock.advance(30)
        await manager.end_session(session_id)

        clock.advance(30)
        with pytest.raises(SessionAlreadyClosedError):
            await manager.end_session(session_id)

        # The first end_time is kept
        assert (await manager.get_session(session_id)).duration == 30

    @pytest.mark.asyncio
    async def test_end_unknown_session(self, manager):
        with pytest.raises(NotFoundError):
            await manager.end_session(42)


class TestDeleteSession:
    @pytest.mark.asyncio
    async def test_delete_open_session(self, manager):
        session_id = await manager.start_session()
        await manager.delete_session(session_id)

        assert await manager.get_active_session_id() is None
        with pytest.raises(NotFoundError):
            await manager.get_session(session_id)

    @pytest.mark.asyncio
    async def test_delete_unknown_session_is_noop(self, manager):
        await manager.delete_session(12345)


class TestBindSession:
    @pytest.mark.asyncio
    async def test_bind_marks_book_reading(self, manager, store, clock):
        book_id = await add_book(store, "Dune")
        session_id = await manager.start_session()
        clock.advance(600)
        await manager.end_session(session_id)

        await manager.bind_session_to_book(session_id, book_id, mark_completed=False)

        assert (await manager.get_session(session_id)).book_id == book_id
        record = await manager.status_coordinator.get_status(book_id)
        assert record.status == ReadingState.READING
        assert record.start_time == "2024-03-15 12:10:00"
        assert record.end_time is None

    @pytest.mark.asyncio
    async def test_bind_marks_book_completed(self, manager, store, clock):
        book_id = await add_book(store, "Dune")
        await set_book_status(store, book_id, "reading", start_time="2024-03-01 09:00:00")
        session_id = await manager.start_session()
        clock.advance(600)
        await manager.end_session(session_id)

        await manager.bind_session_to_book(session_id, book_id, mark_completed=True)

        record = await manager.status_coordinator.get_status(book_id)
        assert record.status == ReadingState.COMPLETED
        assert record.start_time == "2024-03-01 09:00:00"
        assert record.end_time == "2024-03-15 12:10:00"

    @pytest.mark.asyncio
    async def test_bind_open_session_keeps_it_open(self, manager, store):
        book_id = await add_book(store, "Dune")
        session_id = await manager.start_session()

        await manager.bind_session_to_book(session_id, book_id, mark_completed=False)

        session = await manager.get_session(session_id)
        assert session.is_open
        assert session.book_id == book_id

    @pytest.mark.asyncio
    async def test_bind_unknown_session_changes_nothing(self, manager, store):
        book_id = await add_book(store, "Dune")

        with pytest.raises(NotFoundError):
            await manager.bind_session_to_book(999, book_id, mark_completed=True)

        record = await manager.status_coordinator.get_status(book_id)
        assert record.status == ReadingState.TO_READ


class TestFinishSession:
    @pytest.mark.asyncio
    async def test_finish_ends_and_binds(self, manager, store, clock):
        book_id = await add_book(store, "Dune")
        session_id = await manager.start_session()
        clock.advance(1800)

        assert await manager.finish_session(session_id, book_id, mark_completed=True) == 1800

        session = await manager.get_session(session_id)
        assert not session.is_open
        assert session.book_id == book_id
        record = await manager.status_coordinator.get_status(book_id)
        assert record.status == ReadingState.COMPLETED

    @pytest.mark.asyncio
    async def test_finish_rolls_back_when_binding_fails(self, store, clock):
        book_id = await add_book(store, "Dune")
        coordinator = ReadingStatusCoordinator(store, clock)
        coordinator.set_status = AsyncMock(side_effect=RuntimeError("status write failed"))
        manager = SessionManager(store, status_coordinator=coordinator, clock=clock)

        session_id = await manager.start_session()
        clock.advance(60)

        with pytest.raises(RuntimeError):
            await manager.finish_session(session_id, book_id, mark_completed=False)

        session = await manager.get_session(session_id)
        assert session.is_open
        assert session.book_id is None

    @pytest.mark.asyncio
    async def test_finish_closed_session_raises(self, manager, store, clock):
        book_id = await add_book(store, "Dune")
        session_id = await manager.start_session()
        await manager.end_session(session_id)

        with pytest.raises(SessionAlreadyClosedError):
            await manager.finish_session(session_id, book_id, mark_completed=True)

        assert (await manager.get_session(session_id)).book_id is None


class TestEligibleBooks:
    @pytest.mark.asyncio
    async def test_only_unfinished_books_ordered_by_title(self, manager, store):
        zebra = await add_book(store, "Zebra Tales")
        apple = await add_book(store, "Apple Orchard")
        done = await add_book(store, "Middlemarch")
        current = await add_book(store, "Moby Dick")
        await set_book_status(store, done, "completed", "2024-01-01 10:00:00", "2024-02-01 10:00:00")
        await set_book_status(store, current, "reading", "2024-03-01 10:00:00")

        books = await manager.get_eligible_books()

        assert [book.id for book in books] == [apple, current, zebra]
        assert [book.status for book in books] == [ReadingState.TO_READ, ReadingState.READING, ReadingState.TO_READ]

    @pytest.mark.asyncio
    async def test_empty_library(self, manager):
        assert await manager.get_eligible_books() == []


class TestConcurrentSessions:
    @pytest.mark.asyncio
    async def test_concurrent_starts_share_one_session(self, manager, store):
        session_ids = await asyncio.gather(*(manager.start_session() for _ in range(5)))

        assert len(set(session_ids)) == 1
        assert await manager.get_active_session_id() == session_ids[0]
        assert await store.count("SELECT COUNT(*) FROM reading_sessions WHERE end_time IS NULL") == 1

    @pytest.mark.asyncio
    async def test_concurrent_starts_from_separate_managers(self, store, clock):
        first, second = SessionManager(store, clock=clock), SessionManager(store, clock=clock)

        session_ids = await asyncio.gather(first.start_session(), second.start_session())

        assert session_ids[0] == session_ids[1]
        assert await store.count("SELECT COUNT(*) FROM reading_sessions") == 1

    @pytest.mark.asyncio
    async def test_delete_survives_concurrent_failed_end(self, manager, store):
        closed_id = await add_session(store, "2024-03-14 10:00:00", "2024-03-14 11:00:00")
        victim_id = await add_session(store, "2024-03-15 11:00:00")

        results = await asyncio.gather(
            manager.end_session(closed_id),
            manager.delete_session(victim_id),
            return_exceptions=True,
        )

        assert isinstance(results[0], SessionAlreadyClosedError)
        assert results[1] is None
        with pytest.raises(NotFoundError):
            await manager.get_session(victim_id)
        assert (await manager.get_session(closed_id)).end_time == "2024-03-14 11:00:00"

    @pytest.mark.asyncio
    async def test_concurrent_end_closes_once(self, manager, clock):
        session_id = await manager.start_session()
        clock.advance(seconds=60)

        results = await asyncio.gather(
            manager.end_session(session_id),
            manager.end_session(session_id),
            return_exceptions=True,
        )

        assert sorted(type(result).__name__ for result in results) == ["SessionAlreadyClosedError", "int"]
        assert 60 in results
