"""Database utilities and connections."""

from .connections import connect_sync

__all__ = ["connect_sync"]
