"""Per-book reading status state machine."""

from .coordinator import ReadingState, ReadingStatusCoordinator, ReadingStatusRecord, next_status_record

__all__ = ["ReadingState", "ReadingStatusCoordinator", "ReadingStatusRecord", "next_status_record"]
