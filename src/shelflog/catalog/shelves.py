#!/usr/bin/env python3
"""Favorites and wishlist shelves."""

import logging
from dataclasses import dataclass
from typing import Literal, TypeAlias

from ..common import BookId, Clock, format_timestamp, utc_now
from ..constants import UNKNOWN_AUTHOR_LABEL
from ..database.store import LibraryStore

logger = logging.getLogger(__name__)

ShelfName: TypeAlias = Literal["favorites", "wishlist"]


@dataclass(frozen=True)
class ShelvedBook:
    id: BookId
    title: str
    author: str
    rating: int | None
    added_at: str


class Shelf:
    """A set of books stored in the favorites or wishlist table."""

    def __init__(self, store: LibraryStore, name: ShelfName, clock: Clock = utc_now):
        if name not in ("favorites", "wishlist"):
            raise ValueError(f"Unknown shelf: {name}")
        self.store = store
        self.name = name
        self.clock = clock

    async def add(self, book_id: BookId) -> bool:
        """Put a book on the shelf. Returns False if it was already there."""
        affected = await self.store.execute(
            f"INSERT OR IGNORE INTO {self.name} (book_id, added_at) VALUES (?, ?)",
            (book_id, format_timestamp(self.clock())),
        )
        if affected:
            logger.debug(f"Book {book_id} added to {self.name}")
        return affected > 0

    async def remove(self, book_id: BookId) -> bool:
        affected = await self.store.execute(f"DELETE FROM {self.name} WHERE book_id = ?", (book_id,))
        return affected > 0

    async def contains(self, book_id: BookId) -> bool:
        row = await self.store.query_one(f"SELECT 1 FROM {self.name} WHERE book_id = ?", (book_id,))
        return row is not None

    async def list_books(self) -> list[ShelvedBook]:
        """Shelved books, most recently added first."""
        rows = await self.store.query_all(
            f"""
            SELECT
                b.id,
                b.title,
                COALESCE(
                    (SELECT GROUP_CONCAT(a.name, ', ')
                     FROM book_authors ba
                     JOIN authors a ON ba.author_id = a.id
                     WHERE ba.book_id = b.id),
                    ?
                ) AS author,
                r.rating,
                s.added_at
            FROM {self.name} s
            JOIN books b ON s.book_id = b.id
            LEFT JOIN ratings r ON b.id = r.book_id
            ORDER BY s.added_at DESC, b.id DESC
            """,
            (UNKNOWN_AUTHOR_LABEL,),
        )
        return [
            ShelvedBook(
                id=row["id"],
                title=row["title"],
                author=row["author"],
                rating=row["rating"],
                added_at=row["added_at"],
            )
            for row in rows
        ]


def favorites(store: LibraryStore, clock: Clock = utc_now) -> Shelf:
    return Shelf(store, "favorites", clock)


def wishlist(store: LibraryStore, clock: Clock = utc_now) -> Shelf:
    return Shelf(store, "wishlist", clock)
