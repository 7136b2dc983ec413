"""Logging configuration for Conduit.

Module loggers use the standard library; the HTTP layer emits structlog
events. Both end up on the same stderr handler, so one ``LOG_LEVEL``
governs everything.
"""

import logging
import sys

import structlog

from conduit.settings import get_settings

# Third-party loggers held at WARNING
NOISY_LOGGERS = [
    "httpcore",
    "httpx",
    "asyncio",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "apscheduler.scheduler",
    "apscheduler.executors.default",  # "Running job ..." on every tick
    "uvicorn.access",  # replaced by the request events
]


def suppress_noisy_loggers() -> None:
    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.WARNING)
        noisy.handlers.clear()


def configure_structlog() -> None:
    """Render structlog events as ``event k=v ...`` through stdlib logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def configure_logging(level: str | None = None) -> None:
    """Install the stderr handler and quiet library loggers.

    Args:
        level: Override log level (defaults to settings.log_level)
    """
    log_level = getattr(logging, (level or get_settings().log_level).upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s | %(name)s | %(message)s", datefmt="%H:%M:%S")
    )
    root_logger.addHandler(handler)

    configure_structlog()
    suppress_noisy_loggers()
