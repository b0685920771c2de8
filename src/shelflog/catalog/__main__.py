#!/usr/bin/env python3
"""
Book Catalog CLI

Add, list, rate and remove books and change their reading status.
"""

import argparse
import asyncio
import sqlite3
import sys

from shelflog.catalog import BookCatalog, RatingService
from shelflog.common import pluralize
from shelflog.config import add_common_arguments, prepare_command
from shelflog.database.store import LibraryStore
from shelflog.exceptions import ShelflogError
from shelflog.status import ReadingState, ReadingStatusCoordinator

STATUS_CHOICES = [state.value for state in ReadingState]


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for book commands."""
    parser = argparse.ArgumentParser(
        prog="shelflog books",
        description="Manage the books in your library",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available book operations")

    add_parser = subparsers.add_parser("add", help="Add a book")
    add_parser.add_argument("--title", required=True, help="Book title")
    add_parser.add_argument("--author", action="append", default=[], help="Author name (repeatable)")
    add_parser.add_argument("--genre", action="append", default=[], help="Genre name (repeatable)")
    add_parser.add_argument("--isbn13", help="13-digit ISBN")
    add_parser.add_argument("--description", help="Short description")
    add_common_arguments(add_parser)

    list_parser = subparsers.add_parser("list", help="List books")
    list_parser.add_argument("--status", choices=STATUS_CHOICES, help="Only books in this reading status")
    add_common_arguments(list_parser)

    rate_parser = subparsers.add_parser("rate", help="Rate a book from 1 to 5")
    rate_parser.add_argument("book_id", type=int)
    rate_parser.add_argument("rating", type=int)
    rate_parser.add_argument("--comment", help="Optional comment")
    add_common_arguments(rate_parser)

    unrate_parser = subparsers.add_parser("unrate", help="Remove a book's rating")
    unrate_parser.add_argument("book_id", type=int)
    add_common_arguments(unrate_parser)

    status_parser = subparsers.add_parser("status", help="Set a book's reading status")
    status_parser.add_argument("book_id", type=int)
    status_parser.add_argument("status", choices=STATUS_CHOICES)
    add_common_arguments(status_parser)

    remove_parser = subparsers.add_parser("remove", help="Remove a book and everything recorded about it")
    remove_parser.add_argument("book_id", type=int)
    add_common_arguments(remove_parser)

    return parser


async def handle_add(store: LibraryStore, args) -> int:
    details = {key: value for key, value in (("isbn13", args.isbn13), ("description", args.description)) if value}
    book_id = await BookCatalog(store).add_book(args.title, authors=args.author, genres=args.genre, **details)
    print(f"Added book {book_id}: {args.title}")
    return 0


async def handle_list(store: LibraryStore, args) -> int:
    books = await BookCatalog(store).list_books(args.status)
    if not books:
        print("No books found")
        return 0

    for book in books:
        print(f"{book.id:>5}  {book.status:<9}  {book.title} ({book.author})")
    print(f"\n{len(books)} {pluralize(len(books), 'book')}")
    return 0


async def handle_rate(store: LibraryStore, args) -> int:
    await BookCatalog(store).get_book(args.book_id)
    await RatingService(store).save_rating(args.book_id, args.rating, args.comment)
    print(f"Rated book {args.book_id}: {'★' * args.rating}")
    return 0


async def handle_unrate(store: LibraryStore, args) -> int:
    if not await RatingService(store).delete_rating(args.book_id):
        print(f"Book {args.book_id} has no rating")
        return 1
    print(f"Removed rating for book {args.book_id}")
    return 0


async def handle_status(store: LibraryStore, args) -> int:
    if not await ReadingStatusCoordinator(store).set_status(args.book_id, args.status):
        print(f"Book {args.book_id} not found")
        return 1
    print(f"Book {args.book_id} is now {args.status}")
    return 0


async def handle_remove(store: LibraryStore, args) -> int:
    if not await BookCatalog(store).remove_book(args.book_id):
        print(f"Book {args.book_id} not found")
        return 1
    print(f"Removed book {args.book_id}")
    return 0


HANDLERS = {
    "add": handle_add,
    "list": handle_list,
    "rate": handle_rate,
    "unrate": handle_unrate,
    "status": handle_status,
    "remove": handle_remove,
}


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for book commands."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        return 1

    handler = HANDLERS.get(args.subcommand)
    if handler is None:
        print(f"Unknown subcommand: {args.subcommand}")
        parser.print_help()
        return 1

    config = prepare_command(args, require_database=args.subcommand != "add")

    try:
        async with LibraryStore(config.db_path) as store:
            return await handler(store, args)
    except (ShelflogError, ValueError, sqlite3.IntegrityError) as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
