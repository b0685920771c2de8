#!/usr/bin/env python3
"""
Book Catalog

Adding, listing and removing books together with their authors and genres.
Each new book gets a to_read reading_status row from the schema trigger.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..common import BookId
from ..constants import UNKNOWN_AUTHOR_LABEL
from ..database.store import LibraryStore
from ..exceptions import NotFoundError
from ..status import ReadingState

logger = logging.getLogger(__name__)

BOOK_COLUMNS = ("description", "cover_url", "editor", "publication", "language", "isbn10", "isbn13")


@dataclass(frozen=True)
class BookSummary:
    id: BookId
    title: str
    author: str
    status: ReadingState
    genres: str | None = None


class BookCatalog:
    def __init__(self, store: LibraryStore):
        self.store = store

    async def _author_id(self, name: str) -> int:
        row = await self.store.query_one("SELECT id FROM authors WHERE name = ? ORDER BY id LIMIT 1", (name,))
        if row:
            return row["id"]
        return await self.store.insert("authors", {"name": name})

    async def _genre_id(self, name: str) -> int:
        await self.store.execute("INSERT OR IGNORE INTO genres (name) VALUES (?)", (name,))
        row = await self.store.query_one("SELECT id FROM genres WHERE name = ?", (name,))
        return row["id"]

    async def add_book(
        self,
        title: str,
        authors: Iterable[str] = (),
        genres: Iterable[str] = (),
        **details,
    ) -> BookId:
        """
        Add a book and link its authors and genres, creating them as needed.

        Args:
            title: Book title
            authors: Author names
            genres: Genre names
            **details: Optional book columns (description, isbn13, ...)

        Returns:
            The new book's id
        """
        title = title.strip()
        if not title:
            raise ValueError("Title cannot be empty")

        unknown = set(details) - set(BOOK_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown book fields: {sorted(unknown)}")

        async with self.store.transaction():
            book_id = await self.store.insert("books", {"title": title, **details})

            for name in dict.fromkeys(a.strip() for a in authors if a.strip()):
                author_id = await self._author_id(name)
                await self.store.insert("book_authors", {"book_id": book_id, "author_id": author_id})

            for name in dict.fromkeys(g.strip() for g in genres if g.strip()):
                genre_id = await self._genre_id(name)
                await self.store.insert("book_genres", {"book_id": book_id, "genre_id": genre_id})

        logger.info(f"Added book {book_id}: {title}")
        return book_id

    async def get_book(self, book_id: BookId) -> BookSummary:
        books = await self._summaries("WHERE b.id = ?", (book_id,))
        if not books:
            raise NotFoundError(f"Book {book_id} not found")
        return books[0]

    async def list_books(self, status: ReadingState | str | None = None) -> list[BookSummary]:
        """All books ordered by title, optionally filtered by reading status."""
        if status is None:
            return await self._summaries()
        return await self._summaries("WHERE rs.status = ?", (str(ReadingState(status)),))

    async def remove_book(self, book_id: BookId) -> bool:
        """Delete a book; its status, sessions, ratings and shelf entries cascade."""
        affected = await self.store.execute("DELETE FROM books WHERE id = ?", (book_id,))
        if affected:
            logger.info(f"Removed book {book_id}")
        return affected > 0

    async def _summaries(self, where: str = "", params: tuple = ()) -> list[BookSummary]:
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
                (SELECT GROUP_CONCAT(g.name, ', ')
                 FROM book_genres bg
                 JOIN genres g ON bg.genre_id = g.id
                 WHERE bg.book_id = b.id) AS genres,
                rs.status
            FROM books b
            JOIN reading_status rs ON b.id = rs.book_id
            {where}
            ORDER BY b.title, b.id
            """,
            (UNKNOWN_AUTHOR_LABEL, *params),
        )
        return [
            BookSummary(
                id=row["id"],
                title=row["title"],
                author=row["author"],
                status=ReadingState(row["status"]),
                genres=row["genres"],
            )
            for row in rows
        ]
