#!/usr/bin/env python3
"""
Library Configuration Management

Reading, writing and resolving shelflog configuration from JSON files,
environment variables and command line arguments.
"""

import json
import os
import types
from argparse import ArgumentParser, Namespace
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, TypedDict, Union, get_args, get_origin

from .constants import (
    DB_PATH_ENV_VAR,
    DEFAULT_DB_PATH,
    DEFAULT_LATEST_RATINGS_LIMIT,
    DEFAULT_LOG_DIR,
    DEFAULT_STREAK_WINDOW_DAYS,
    LOG_DIR_ENV_VAR,
)
from .database.database_utils import validate_database_file
from .logging_config import setup_logging


def serialize_paths(obj: Any) -> Any:
    """Recursively convert Path objects to strings."""
    if isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: serialize_paths(v) for k, v in obj.items()}
    elif isinstance(obj, list | tuple):
        return [serialize_paths(item) for item in obj]
    return obj


def deserialize_paths(obj: Any, type_hint: Any) -> Any:
    """Recursively convert strings back to Paths based on type hints."""
    if type_hint == Path:
        return Path(obj) if obj is not None else None

    # Handle Optional[Path] (Path | None or Union[Path, None])
    origin = get_origin(type_hint)
    args = get_args(type_hint)

    if (origin is Union or origin is types.UnionType) and Path in args:
        if obj is not None and isinstance(obj, str):
            return Path(obj)
        return obj

    # Dataclasses first, since they also carry __annotations__
    if hasattr(type_hint, "__dataclass_fields__"):
        result = {}
        for f in fields(type_hint):
            if f.name in obj:
                result[f.name] = deserialize_paths(obj[f.name], f.type)
        return type_hint(**result)

    if isinstance(obj, dict) and hasattr(type_hint, "__annotations__"):
        result = {}
        for key, value in obj.items():
            if key in type_hint.__annotations__:
                result[key] = deserialize_paths(value, type_hint.__annotations__[key])
            else:
                result[key] = value
        return result

    return obj


class StatsConfig(TypedDict):
    latest_ratings_limit: int
    streak_window_days: int


def default_stats_config() -> StatsConfig:
    return {
        "latest_ratings_limit": DEFAULT_LATEST_RATINGS_LIMIT,
        "streak_window_days": DEFAULT_STREAK_WINDOW_DAYS,
    }


@dataclass
class LibraryConfig:
    """Configuration for a shelflog library."""

    db_path: Path = DEFAULT_DB_PATH
    log_dir: Path = DEFAULT_LOG_DIR
    log_level: str = "INFO"
    stats_config: StatsConfig = field(default_factory=default_stats_config)

    @property
    def latest_ratings_limit(self) -> int:
        """Get the number of ratings shown in the latest-ratings view."""
        return self.stats_config.get("latest_ratings_limit", DEFAULT_LATEST_RATINGS_LIMIT)

    @property
    def streak_window_days(self) -> int:
        """Get the look-back window for reading streaks."""
        return self.stats_config.get("streak_window_days", DEFAULT_STREAK_WINDOW_DAYS)


def load_library_config(config_path: str | Path) -> LibraryConfig:
    """
    Load library configuration from a specific path.
    """
    with open(config_path) as f:
        config_dict = json.load(f)
    config = deserialize_paths(config_dict, LibraryConfig)
    # Fill in stats settings missing from older files
    config.stats_config = {**default_stats_config(), **config.stats_config}
    return config


def save_library_config(config: LibraryConfig, config_path: str | Path) -> None:
    """
    Save library configuration as JSON.
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_dict = serialize_paths(asdict(config))
    with open(config_path, "w") as f:
        json.dump(config_dict, f, indent=2)


def add_common_arguments(parser: ArgumentParser) -> None:
    """Add the options shared by every shelflog command."""
    parser.add_argument("--db-path", help=f"Path to the library database (env: {DB_PATH_ENV_VAR})")
    parser.add_argument("--config", help="Path to a JSON library configuration file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )


def build_config_from_args(args: Namespace) -> LibraryConfig:
    """
    Resolve configuration with precedence: CLI arguments, environment, config file, defaults.
    """
    config_path = getattr(args, "config", None)
    config = load_library_config(config_path) if config_path else LibraryConfig()

    if os.environ.get(DB_PATH_ENV_VAR):
        config.db_path = Path(os.environ[DB_PATH_ENV_VAR])
    if os.environ.get(LOG_DIR_ENV_VAR):
        config.log_dir = Path(os.environ[LOG_DIR_ENV_VAR])

    if getattr(args, "db_path", None):
        config.db_path = Path(args.db_path)
    if getattr(args, "log_level", None):
        config.log_level = args.log_level

    return config


def prepare_command(args: Namespace, require_database: bool = True) -> LibraryConfig:
    """
    Resolve configuration and set up logging for a CLI command.

    Args:
        args: Parsed command line arguments
        require_database: Exit with an error if the library database does not exist yet

    Returns:
        The resolved configuration
    """
    config = build_config_from_args(args)
    setup_logging(config.log_level, config.log_dir / "shelflog.log")
    if require_database:
        validate_database_file(config.db_path)
    return config
