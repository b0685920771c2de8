"""Allow running as ``python -m shelflog``."""

from shelflog.cli import entry_point

entry_point()
