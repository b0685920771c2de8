"""
Exceptions raised by shelflog services.

Store-level sqlite3/aiosqlite errors are not wrapped and propagate as-is.
"""


class ShelflogError(Exception):
    """Base exception for shelflog errors."""

    pass


class NotFoundError(ShelflogError):
    """Raised when a session or book id does not exist."""

    pass


class InvalidStateError(ShelflogError):
    """Raised when an operation's precondition on stored state is not met."""

    pass


class NotStartedError(InvalidStateError):
    """Raised when a session has no start_time."""

    pass


class SessionAlreadyClosedError(InvalidStateError):
    """Raised when ending a session that already has an end_time."""

    pass


class InvalidRatingError(ShelflogError, ValueError):
    """Raised when a rating is outside the 1-5 range."""

    pass
