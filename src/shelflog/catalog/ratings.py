#!/usr/bin/env python3
"""Personal book ratings: one rating (1-5) per book with an optional comment."""

import logging
from dataclasses import dataclass

from ..common import BookId, Clock, format_timestamp, utc_now
from ..constants import MAX_RATING, MIN_RATING
from ..database.store import LibraryStore
from ..exceptions import InvalidRatingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rating:
    book_id: BookId
    rating: int
    comment: str | None
    rated_at: str


class RatingService:
    def __init__(self, store: LibraryStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    async def save_rating(self, book_id: BookId, rating: int, comment: str | None = None) -> None:
        """
        Create or replace a book's rating. rated_at is refreshed on every save.

        Raises:
            InvalidRatingError: If rating is outside 1-5
        """
        if not MIN_RATING <= rating <= MAX_RATING:
            raise InvalidRatingError(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")

        await self.store.execute(
            """
            INSERT INTO ratings (book_id, rating, comment, rated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(book_id) DO UPDATE SET
                rating = excluded.rating,
                comment = excluded.comment,
                rated_at = excluded.rated_at
            """,
            (book_id, rating, comment or None, format_timestamp(self.clock())),
        )
        logger.debug(f"Rated book {book_id}: {rating}")

    async def get_rating(self, book_id: BookId) -> Rating | None:
        row = await self.store.query_one(
            "SELECT book_id, rating, comment, rated_at FROM ratings WHERE book_id = ?", (book_id,)
        )
        if row is None:
            return None
        return Rating(book_id=row["book_id"], rating=row["rating"], comment=row["comment"], rated_at=row["rated_at"])

    async def delete_rating(self, book_id: BookId) -> bool:
        """Withdraw a rating. Returns False if the book had none."""
        affected = await self.store.execute("DELETE FROM ratings WHERE book_id = ?", (book_id,))
        return affected > 0
