"""Reading session lifecycle."""

from .manager import EligibleBook, ReadingSession, SessionManager

__all__ = ["EligibleBook", "ReadingSession", "SessionManager"]
