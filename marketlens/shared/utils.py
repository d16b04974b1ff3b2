"""Shared utility functions for marketlens."""

import logging
from datetime import date, datetime
from pathlib import Path

import pytz


def setup_logger(
    name: str, log_file: Path | None = None, level: int | str = logging.INFO
) -> logging.Logger:
    """Set up logger with console and file handlers.

    Args:
        name: Logger name
        log_file: Optional path to log file
        level: Logging level (int constant or string name like 'DEBUG', 'INFO')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Convert string level to int if needed
    if isinstance(level, str):
        numeric_level = getattr(logging, level.upper(), logging.INFO)
        logger.setLevel(numeric_level)
    else:
        logger.setLevel(level)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # Console handler, attached once per logger name
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def to_utc(dt: datetime, from_tz: str = "America/Sao_Paulo") -> datetime:
    """Convert datetime to UTC. Naive values are read as `from_tz` local time."""
    if dt.tzinfo is None:
        dt = pytz.timezone(from_tz).localize(dt)
    return dt.astimezone(pytz.UTC)


def utc_date_from_timestamp(ts: int | float) -> date:
    """Return the UTC calendar date of a Unix timestamp."""
    return datetime.fromtimestamp(ts, tz=pytz.UTC).date()


def change_pct(current: float | None, previous: float | None) -> float | None:
    """Percentage change from `previous` to `current`.

    Returns None unless both prices exist and the reference is positive.
    """
    if current is None or previous is None or previous <= 0:
        return None
    return ((current - previous) / previous) * 100
