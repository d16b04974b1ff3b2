"""Shared utilities and configuration."""

from marketlens.shared.config import Config
from marketlens.shared.utils import change_pct, setup_logger, to_utc, utc_date_from_timestamp

__all__ = ["Config", "setup_logger", "to_utc", "utc_date_from_timestamp", "change_pct"]
