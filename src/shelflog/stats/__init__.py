"""Reading statistics views."""

from .aggregator import StatisticsAggregator
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

__all__ = [
    "BookRating",
    "GenreDatum",
    "MonthlyDatum",
    "RatingStats",
    "ReadingStats",
    "StatisticsAggregator",
    "StatisticsSnapshot",
    "TimeStats",
    "WeeklyDatum",
    "YearlyDatum",
]
