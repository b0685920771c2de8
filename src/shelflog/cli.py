#!/usr/bin/env python3
"""
shelflog Command Line Interface

Track what you read, how long you read, and how it adds up.

Commands:
  books          Add, list, rate and remove books; set reading status
  session        Start, stop and discard timed reading sessions
  stats          View reading statistics
"""

import argparse
import asyncio
import sys

from shelflog.catalog.__main__ import main as books_main
from shelflog.sessions.__main__ import main as session_main
from shelflog.stats.__main__ import main as stats_main

COMMANDS = {
    "books": books_main,
    "session": session_main,
    "stats": stats_main,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="shelflog",
        description="shelflog: personal reading tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add a book
  shelflog books add --title "Dune" --author "Frank Herbert" --genre "Science Fiction"

  # Time a reading session and attribute it to book 1
  shelflog session start
  shelflog session stop --book-id 1

  # Finish the book in the same step
  shelflog session stop --book-id 1 --completed

  # Rate it
  shelflog books rate 1 5 --comment "Spice must flow"

  # View statistics (human-readable or JSON)
  shelflog stats view
  shelflog stats view --raw > stats.json

For more help on each command, use: shelflog <command> --help
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("books", help="Manage books, ratings and reading status")
    subparsers.add_parser("session", help="Track timed reading sessions")
    subparsers.add_parser("stats", help="View reading statistics")

    return parser


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the shelflog CLI."""
    parser = create_parser()
    argv = sys.argv[1:] if argv is None else argv

    if not argv:
        parser.print_help()
        return 1

    command, rest = argv[0], argv[1:]

    if command in ("-h", "--help"):
        parser.print_help()
        return 0

    # Route to the command module with the remaining arguments
    handler = COMMANDS.get(command)
    if handler is None:
        print(f"Unknown command: {command}")
        parser.print_help()
        return 1

    return await handler(rest)


def entry_point() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)


if __name__ == "__main__":
    entry_point()
