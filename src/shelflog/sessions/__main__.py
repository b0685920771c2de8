#!/usr/bin/env python3
"""
Reading Session CLI

Start, inspect, stop and discard the open reading session.
"""

import argparse
import asyncio
import sys

from shelflog.catalog import BookCatalog
from shelflog.common import format_duration
from shelflog.config import add_common_arguments, prepare_command
from shelflog.database.store import LibraryStore
from shelflog.exceptions import ShelflogError
from shelflog.sessions import SessionManager


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for session commands."""
    parser = argparse.ArgumentParser(
        prog="shelflog session",
        description="Track timed reading sessions",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available session operations")

    start_parser = subparsers.add_parser("start", help="Start a session (or show the one already running)")
    add_common_arguments(start_parser)

    status_parser = subparsers.add_parser("status", help="Show the open session and its elapsed time")
    add_common_arguments(status_parser)

    stop_parser = subparsers.add_parser("stop", help="Stop the open session")
    stop_parser.add_argument("--book-id", type=int, help="Attribute the session to this book")
    stop_parser.add_argument("--completed", action="store_true", help="Mark the book as completed")
    add_common_arguments(stop_parser)

    discard_parser = subparsers.add_parser("discard", help="Throw away the open session")
    add_common_arguments(discard_parser)

    eligible_parser = subparsers.add_parser("eligible", help="List books a session can be attributed to")
    add_common_arguments(eligible_parser)

    return parser


async def handle_start(manager: SessionManager) -> int:
    active = await manager.get_active_session_id()
    session_id = await manager.start_session()
    if active == session_id:
        print(f"Session {session_id} is already running")
    else:
        print(f"Started session {session_id}")
    return 0


async def handle_status(manager: SessionManager) -> int:
    session_id = await manager.get_active_session_id()
    if session_id is None:
        print("No reading session in progress")
        return 0

    elapsed = await manager.get_duration_to_now(session_id)
    print(f"Session {session_id}: {format_duration(elapsed)} elapsed")
    return 0


async def handle_stop(manager: SessionManager, catalog: BookCatalog, args) -> int:
    if args.completed and args.book_id is None:
        print("--completed requires --book-id")
        return 1
    if args.book_id is not None:
        # Raises NotFoundError before the session is touched
        await catalog.get_book(args.book_id)

    session_id = await manager.get_active_session_id()
    if session_id is None:
        print("No reading session in progress")
        return 1

    if args.book_id is None:
        duration = await manager.end_session(session_id)
        print(f"Stopped session {session_id} after {format_duration(duration)}")
    else:
        duration = await manager.finish_session(session_id, args.book_id, args.completed)
        state = "completed" if args.completed else "reading"
        print(f"Stopped session {session_id} after {format_duration(duration)}, book {args.book_id} is now {state}")
    return 0


async def handle_discard(manager: SessionManager) -> int:
    session_id = await manager.get_active_session_id()
    if session_id is None:
        print("No reading session in progress")
        return 1

    await manager.delete_session(session_id)
    print(f"Discarded session {session_id}")
    return 0


async def handle_eligible(manager: SessionManager) -> int:
    books = await manager.get_eligible_books()
    if not books:
        print("No books waiting to be read")
        return 0

    for book in books:
        print(f"{book.id:>5}  {book.status:<9}  {book.title}")
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for session commands."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        return 1

    config = prepare_command(args, require_database=args.subcommand != "start")

    try:
        async with LibraryStore(config.db_path) as store:
            manager = SessionManager(store)

            if args.subcommand == "start":
                return await handle_start(manager)
            elif args.subcommand == "status":
                return await handle_status(manager)
            elif args.subcommand == "stop":
                return await handle_stop(manager, BookCatalog(store), args)
            elif args.subcommand == "discard":
                return await handle_discard(manager)
            elif args.subcommand == "eligible":
                return await handle_eligible(manager)
            else:
                print(f"Unknown subcommand: {args.subcommand}")
                parser.print_help()
                return 1

    except ShelflogError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
