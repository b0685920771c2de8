#!/usr/bin/env python3
"""
Reading Statistics CLI

Print every statistics view, human-readable or as JSON.
"""

import argparse
import asyncio
import json
import sys

from shelflog.common import pluralize
from shelflog.config import add_common_arguments, prepare_command
from shelflog.database.store import LibraryStore
from shelflog.stats import StatisticsAggregator, StatisticsSnapshot


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for stats commands."""
    parser = argparse.ArgumentParser(
        prog="shelflog stats",
        description="View reading statistics",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available statistics operations")

    view_parser = subparsers.add_parser("view", help="View reading statistics")
    view_parser.add_argument("--raw", action="store_true", help="Output raw JSON (can be piped to file)")
    add_common_arguments(view_parser)

    return parser


def print_snapshot(snapshot: StatisticsSnapshot) -> None:
    reading = snapshot.reading
    print(f"Books: {reading.total_books} total")
    print(f"  Completed: {reading.books_read}")
    print(f"  Reading:   {reading.books_reading}")
    print(f"  To read:   {reading.books_to_read}")

    print("\nCompleted per month:")
    for datum in snapshot.monthly:
        print(f"  {datum.month_label} {datum.year}: {datum.count}")

    if snapshot.yearly:
        print("\nCompleted per year:")
        for datum in snapshot.yearly:
            print(f"  {datum.year_label}: {datum.count}")

    if snapshot.genres:
        print("\nGenres:")
        for datum in snapshot.genres:
            print(f"  {datum.label}: {datum.count} ({datum.percentage}%)")

    print("\nSessions this week:")
    print("  " + "  ".join(f"{datum.day_label} {datum.session_count}" for datum in snapshot.weekly))

    ratings = snapshot.ratings
    print(f"\nRatings: {ratings.total_ratings} (average {ratings.average_rating:.1f})")
    for stars in sorted(ratings.distribution, reverse=True):
        print(f"  {stars}★ {ratings.distribution[stars]}")

    if snapshot.latest_ratings:
        print("\nLatest ratings:")
        for rating in snapshot.latest_ratings:
            comment = f" - {rating.comment}" if rating.comment else ""
            print(f"  {'★' * rating.rating:<5} {rating.title} ({rating.author}){comment}")

    time_stats = snapshot.time
    print(f"\nTotal reading time: {time_stats.total_reading_time_minutes} min")
    print(f"Average per completed book: {time_stats.average_reading_time_hours:.1f} h")
    print(f"Reading streak: {time_stats.reading_streak_days} {pluralize(time_stats.reading_streak_days, 'day')}")


async def handle_view(args) -> int:
    """Handle view subcommand."""
    config = prepare_command(args)

    async with LibraryStore(config.db_path) as store:
        aggregator = StatisticsAggregator(
            store,
            latest_ratings_limit=config.latest_ratings_limit,
            streak_window_days=config.streak_window_days,
        )
        snapshot = await aggregator.snapshot()

    if args.raw:
        print(json.dumps(snapshot.to_dict(), indent=2))
    else:
        print_snapshot(snapshot)
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for stats commands."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        return 1

    if args.subcommand == "view":
        return await handle_view(args)
    else:
        print(f"Unknown subcommand: {args.subcommand}")
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
