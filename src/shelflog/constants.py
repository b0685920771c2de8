#!/usr/bin/env python3
"""
Constants for shelflog.

Centralized constants to eliminate duplication across the codebase.
"""

from pathlib import Path

# Directory paths
DEFAULT_DB_PATH = Path("data") / "library.db"
DEFAULT_LOG_DIR = Path("logs")

# Environment overrides
DB_PATH_ENV_VAR = "SHELFLOG_DB_PATH"
LOG_DIR_ENV_VAR = "SHELFLOG_LOG_DIR"

# Stored timestamp format (UTC, SQLite-native)
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Statistics windows
MONTHLY_WINDOW_MONTHS = 6
WEEKLY_WINDOW_DAYS = 7
DEFAULT_STREAK_WINDOW_DAYS = 30
DEFAULT_LATEST_RATINGS_LIMIT = 5

# Genre distribution: all genres up to this many, else top (N - 1) plus an overflow bucket
GENRE_MAX_BUCKETS = 5
GENRE_OTHER_LABEL = "Other"

UNKNOWN_AUTHOR_LABEL = "Unknown author"

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Indexed by SQLite strftime('%w'): 0 = Sunday
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

MIN_RATING = 1
MAX_RATING = 5
