"""Common utilities: config, logging, time."""

from boostedge.common.config import AppConfig, load_config
from boostedge.common.logging import get_logger, setup_logging
from boostedge.common.time_utils import format_iso, parse_iso, utc_now

__all__ = [
    "AppConfig",
    "load_config",
    "setup_logging",
    "get_logger",
    "utc_now",
    "format_iso",
    "parse_iso",
]
