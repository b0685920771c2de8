#!/usr/bin/env python3
"""
Statistics Models

Display-ready records returned by the statistics aggregator. None of these
are persisted; each is derived from the store on request.
"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ReadingStats:
    books_read: int = 0
    books_reading: int = 0
    books_to_read: int = 0
    total_books: int = 0


@dataclass(frozen=True)
class MonthlyDatum:
    month_label: str
    year: int
    month: int
    count: int


@dataclass(frozen=True)
class YearlyDatum:
    year_label: str
    count: int


@dataclass(frozen=True)
class GenreDatum:
    label: str
    count: int
    percentage: int


@dataclass(frozen=True)
class WeeklyDatum:
    day_label: str
    session_count: int


@dataclass(frozen=True)
class BookRating:
    """A rating joined with its book's title and authors."""

    book_id: int
    title: str
    author: str
    rating: int
    comment: str
    rated_at: str


@dataclass(frozen=True)
class RatingStats:
    average_rating: float = 0.0
    total_ratings: int = 0
    distribution: dict[int, int] = field(default_factory=lambda: dict.fromkeys(range(1, 6), 0))


@dataclass(frozen=True)
class TimeStats:
    total_reading_time_minutes: int
    average_reading_time_hours: float
    reading_streak_days: int


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Every statistics view computed in one fan-out."""

    reading: ReadingStats
    monthly: list[MonthlyDatum]
    yearly: list[YearlyDatum]
    genres: list[GenreDatum]
    weekly: list[WeeklyDatum]
    latest_ratings: list[BookRating]
    ratings: RatingStats
    time: TimeStats

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
