"""Structured logging setup.

Everything goes through stdlib ``logging`` with a structlog
``ProcessorFormatter``, so library records and our own events share one
format. Output goes to stderr, leaving stdout to CLI summaries.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from boostedge.common.config import LoggingConfig

PACKAGE_LOGGER = "boostedge"
NOISY_LOGGERS = ("httpx", "httpcore")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(fmt: str) -> Processor:
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def _handlers(config: LoggingConfig, formatter: logging.Formatter) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog and the root logger.

    Args:
        config: Logging configuration. Uses defaults if not provided.
    """
    config = config or LoggingConfig()
    shared = _shared_processors()
    level = logging.getLevelName(config.level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=_renderer(config.format),
        foreign_pre_chain=shared,
    )

    root = logging.getLogger()
    root.handlers = _handlers(config, formatter)
    root.setLevel(level)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    # Per-request INFO lines duplicate the exchange client's own rpc events
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, defaulting to the package logger."""
    return structlog.get_logger(name or PACKAGE_LOGGER)
