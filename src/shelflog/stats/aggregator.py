#!/usr/bin/env python3
"""
Statistics Aggregator

Read-only views over the library database: status counts, monthly and yearly
completions, genre distribution, weekly sessions, ratings, reading time and
streaks. Nothing is cached; every call re-queries the store. Calendar
bucketing (year-month keys, weekdays, day boundaries) is done by SQLite date
functions, with "now" bound as a parameter from the injected clock.
"""

import asyncio
import logging
from datetime import date, timedelta

from ..common import Clock, format_timestamp, round_half_up, utc_now
from ..constants import (
    DEFAULT_LATEST_RATINGS_LIMIT,
    DEFAULT_STREAK_WINDOW_DAYS,
    GENRE_MAX_BUCKETS,
    GENRE_OTHER_LABEL,
    MAX_RATING,
    MIN_RATING,
    MONTH_LABELS,
    MONTHLY_WINDOW_MONTHS,
    UNKNOWN_AUTHOR_LABEL,
    WEEKDAY_LABELS,
    WEEKLY_WINDOW_DAYS,
)
from ..database.store import LibraryStore
from .models import (
    BookRating,
    GenreDatum,
    MonthlyDatum,
    RatingStats,
    ReadingStats,
    StatisticsSnapshot,
    TimeStats,
    WeeklyDatum,
    YearlyDatum,
)

logger = logging.getLogger(__name__)


def trailing_months(today: date, count: int = MONTHLY_WINDOW_MONTHS) -> list[tuple[int, int]]:
    """(year, zero-based month) pairs for the last count calendar months, oldest first."""
    current = today.year * 12 + today.month - 1
    return [divmod(index, 12) for index in range(current - count + 1, current + 1)]


def percentage_of(count: int, total: int) -> int:
    return int(round_half_up(count * 100 / total)) if total else 0


def bucket_genres(genre_counts: list[tuple[str, int]]) -> list[GenreDatum]:
    """
    Turn (name, count) pairs sorted by count descending into chart buckets.

    Up to GENRE_MAX_BUCKETS genres are returned as-is. Beyond that the top
    GENRE_MAX_BUCKETS - 1 are kept and the rest are summed into one "Other"
    bucket. Percentages are rounded per bucket and may not sum to 100.
    """
    total = sum(count for _, count in genre_counts)
    if not genre_counts or total == 0:
        return []

    if len(genre_counts) <= GENRE_MAX_BUCKETS:
        return [GenreDatum(label=name, count=count, percentage=percentage_of(count, total)) for name, count in genre_counts]

    top = genre_counts[: GENRE_MAX_BUCKETS - 1]
    other_count = sum(count for _, count in genre_counts[GENRE_MAX_BUCKETS - 1 :])

    result = [GenreDatum(label=name, count=count, percentage=percentage_of(count, total)) for name, count in top]
    if other_count > 0:
        result.append(GenreDatum(label=GENRE_OTHER_LABEL, count=other_count, percentage=percentage_of(other_count, total)))
    return result


def consecutive_days(reading_days: list[date], today: date) -> int:
    """
    Length of the run of consecutive days ending at the most recent reading day.

    reading_days must be distinct and sorted newest first. The streak is 0 if
    the most recent reading day is older than yesterday.
    """
    if not reading_days:
        return 0

    latest = reading_days[0]
    if (today - latest).days > 1:
        return 0

    streak = 0
    expected = latest
    for day in reading_days:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


class StatisticsAggregator:
    def __init__(
        self,
        store: LibraryStore,
        clock: Clock = utc_now,
        latest_ratings_limit: int = DEFAULT_LATEST_RATINGS_LIMIT,
        streak_window_days: int = DEFAULT_STREAK_WINDOW_DAYS,
    ):
        self.store = store
        self.clock = clock
        self.latest_ratings_limit = latest_ratings_limit
        self.streak_window_days = streak_window_days

    def _now(self) -> str:
        return format_timestamp(self.clock())

    def _today(self) -> date:
        return date.fromisoformat(self._now()[:10])

    async def get_reading_statistics(self) -> ReadingStats:
        """Count books per reading status."""
        row = await self.store.query_one(
            """
            SELECT
                COUNT(CASE WHEN status = 'completed' THEN 1 END) AS books_read,
                COUNT(CASE WHEN status = 'reading' THEN 1 END) AS books_reading,
                COUNT(CASE WHEN status = 'to_read' THEN 1 END) AS books_to_read,
                COUNT(*) AS total_books
            FROM reading_status
            """
        )
        if not row:
            return ReadingStats()

        return ReadingStats(
            books_read=row["books_read"] or 0,
            books_reading=row["books_reading"] or 0,
            books_to_read=row["books_to_read"] or 0,
            total_books=row["total_books"] or 0,
        )

    async def get_monthly_reading_data(self) -> list[MonthlyDatum]:
        """
        Completed books per calendar month for the trailing months.

        Always returns MONTHLY_WINDOW_MONTHS entries, oldest first, including
        the current month, with zero for months without completions.
        """
        now = self._now()
        rows = await self.store.query_all(
            """
            SELECT strftime('%Y-%m', end_time) AS month_key, COUNT(*) AS count
            FROM reading_status
            WHERE status = 'completed'
              AND end_time IS NOT NULL
              AND end_time >= date(?, 'start of month', ?)
              AND end_time < date(?, 'start of month', '+1 month')
            GROUP BY month_key
            """,
            (now, f"-{MONTHLY_WINDOW_MONTHS - 1} months", now),
        )
        counts = {row["month_key"]: row["count"] for row in rows}

        result = []
        for year, month_index in trailing_months(self._today()):
            month = month_index + 1
            result.append(
                MonthlyDatum(
                    month_label=MONTH_LABELS[month_index],
                    year=year,
                    month=month,
                    count=counts.get(f"{year:04d}-{month:02d}", 0),
                )
            )
        return result

    async def get_yearly_reading_data(self) -> list[YearlyDatum]:
        """
        Completed books per year, one entry for every year from the first to the last year with data.

        Empty when no book has been completed.
        """
        rows = await self.store.query_all(
            """
            SELECT CAST(strftime('%Y', end_time) AS INTEGER) AS year, COUNT(*) AS count
            FROM reading_status
            WHERE status = 'completed' AND end_time IS NOT NULL
            GROUP BY year
            ORDER BY year
            """
        )
        if not rows:
            return []

        counts = {row["year"]: row["count"] for row in rows}
        first_year, last_year = rows[0]["year"], rows[-1]["year"]
        return [YearlyDatum(year_label=str(year), count=counts.get(year, 0)) for year in range(first_year, last_year + 1)]

    async def get_genre_distribution(self) -> list[GenreDatum]:
        """Share of book-genre associations per genre, top genres plus an overflow bucket."""
        rows = await self.store.query_all(
            """
            SELECT g.name, COUNT(bg.book_id) AS count
            FROM genres g
            JOIN book_genres bg ON g.id = bg.genre_id
            JOIN books b ON bg.book_id = b.id
            GROUP BY g.id, g.name
            ORDER BY count DESC, g.name
            """
        )
        return bucket_genres([(row["name"], row["count"]) for row in rows])

    async def get_weekly_progress_data(self) -> list[WeeklyDatum]:
        """
        Closed sessions per weekday over the trailing week, Sunday first.

        Sessions are attributed to the day they started; open sessions are excluded.
        """
        now = self._now()
        rows = await self.store.query_all(
            """
            SELECT CAST(strftime('%w', start_time) AS INTEGER) AS weekday, COUNT(*) AS sessions
            FROM reading_sessions
            WHERE end_time IS NOT NULL
              AND start_time >= date(?, ?)
              AND start_time < date(?, '+1 day')
            GROUP BY weekday
            """,
            (now, f"-{WEEKLY_WINDOW_DAYS - 1} days", now),
        )
        counts = {row["weekday"]: row["sessions"] for row in rows}
        return [WeeklyDatum(day_label=label, session_count=counts.get(index, 0)) for index, label in enumerate(WEEKDAY_LABELS)]

    async def get_latest_book_ratings(self, limit: int | None = None) -> list[BookRating]:
        """Most recent ratings with book title and comma-joined authors."""
        if limit is None:
            limit = self.latest_ratings_limit

        rows = await self.store.query_all(
            """
            SELECT
                b.id AS book_id,
                b.title,
                COALESCE(
                    (SELECT GROUP_CONCAT(a.name, ', ')
                     FROM book_authors ba
                     JOIN authors a ON ba.author_id = a.id
                     WHERE ba.book_id = b.id),
                    ?
                ) AS author,
                r.rating,
                COALESCE(r.comment, '') AS comment,
                r.rated_at
            FROM ratings r
            JOIN books b ON r.book_id = b.id
            ORDER BY r.rated_at DESC, r.book_id DESC
            LIMIT ?
            """,
            (UNKNOWN_AUTHOR_LABEL, limit),
        )
        return [
            BookRating(
                book_id=row["book_id"],
                title=row["title"],
                author=row["author"],
                rating=row["rating"],
                comment=row["comment"],
                rated_at=row["rated_at"],
            )
            for row in rows
        ]

    async def get_rating_statistics(self) -> RatingStats:
        """Average rating (one decimal), total ratings and a 1-5 histogram with every bucket present."""
        overall = await self.store.query_one(
            "SELECT AVG(CAST(rating AS REAL)) AS average_rating, COUNT(*) AS total_ratings FROM ratings"
        )
        rows = await self.store.query_all("SELECT rating, COUNT(*) AS count FROM ratings GROUP BY rating")

        distribution = dict.fromkeys(range(MIN_RATING, MAX_RATING + 1), 0)
        for row in rows:
            distribution[row["rating"]] = row["count"]

        average = overall["average_rating"] if overall and overall["average_rating"] is not None else 0.0
        total = overall["total_ratings"] if overall else 0
        return RatingStats(
            average_rating=round_half_up(average, 1),
            total_ratings=total or 0,
            distribution=distribution,
        )

    async def get_total_reading_time(self) -> int:
        """Total minutes over all closed sessions."""
        total_seconds = await self.store.count(
            "SELECT SUM(duration) FROM reading_sessions WHERE end_time IS NOT NULL AND duration IS NOT NULL"
        )
        return int(round_half_up(total_seconds / 60))

    async def get_average_reading_time(self) -> float:
        """
        Average hours of session time per completed book, one decimal.

        Only completed books with at least one closed session count; 0 when there are none.
        """
        row = await self.store.query_one(
            """
            SELECT COUNT(DISTINCT rs.book_id) AS completed_books, SUM(s.duration) AS total_seconds
            FROM reading_status rs
            JOIN reading_sessions s ON rs.book_id = s.book_id
            WHERE rs.status = 'completed'
              AND s.end_time IS NOT NULL
              AND s.duration IS NOT NULL
            """
        )
        completed_books = row["completed_books"] if row else 0
        if not completed_books:
            return 0.0

        total_seconds = row["total_seconds"] or 0
        return round_half_up(total_seconds / completed_books / 3600, 1)

    async def get_reading_streak(self) -> int:
        """Consecutive days with a closed session, ending today or yesterday, within the look-back window."""
        now = self._now()
        rows = await self.store.query_all(
            """
            SELECT DISTINCT date(start_time) AS reading_date
            FROM reading_sessions
            WHERE end_time IS NOT NULL
              AND start_time >= date(?, ?)
              AND start_time < date(?, '+1 day')
            ORDER BY reading_date DESC
            """,
            (now, f"-{self.streak_window_days} days", now),
        )
        reading_days = [date.fromisoformat(row["reading_date"]) for row in rows]
        return consecutive_days(reading_days, self._today())

    async def get_time_statistics(self) -> TimeStats:
        total, average, streak = await asyncio.gather(
            self.get_total_reading_time(),
            self.get_average_reading_time(),
            self.get_reading_streak(),
        )
        return TimeStats(
            total_reading_time_minutes=total,
            average_reading_time_hours=average,
            reading_streak_days=streak,
        )

    async def snapshot(self) -> StatisticsSnapshot:
        """Compute every view concurrently."""
        reading, monthly, yearly, genres, weekly, latest, ratings, time_stats = await asyncio.gather(
            self.get_reading_statistics(),
            self.get_monthly_reading_data(),
            self.get_yearly_reading_data(),
            self.get_genre_distribution(),
            self.get_weekly_progress_data(),
            self.get_latest_book_ratings(),
            self.get_rating_statistics(),
            self.get_time_statistics(),
        )
        logger.debug(f"Statistics snapshot computed for {reading.total_books} books")
        return StatisticsSnapshot(
            reading=reading,
            monthly=monthly,
            yearly=yearly,
            genres=genres,
            weekly=weekly,
            latest_ratings=latest,
            ratings=ratings,
            time=time_stats,
        )
