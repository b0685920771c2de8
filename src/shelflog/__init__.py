"""shelflog: reading sessions, reading status and statistics for a personal book library."""

__version__ = "0.1.0"
