"""Logging initialization utilities using loguru."""

from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

CONSOLE_FORMAT = "<level>{level: <8}</level> | {message}"


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(Path.home() / ".local" / "state" / "tile-catalog" / "logs")


def init_logging(log_dir: str | None = None, console_level: str | None = None) -> None:
    """Initialize rotating file logging under the given directory.

    Args:
        log_dir: Directory for `catalog_*.log` files; defaults to
            `get_log_directory()`.
        console_level: When set, also log to stderr from this level up.
    """
    if log_dir is None:
        log_dir = get_log_directory()
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "catalog_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level="INFO",
    )
    if console_level:
        logger.add(sys.stderr, level=console_level, format=CONSOLE_FORMAT, colorize=False)
