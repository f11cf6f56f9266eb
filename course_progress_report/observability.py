"""Structured logging setup for the course progress report."""

import logging
import sys

import structlog


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog to emit JSON lines on stderr.

    Stdlib loggers used by the pure computation modules are routed to the
    same stream at the same level.

    Args:
        level: Minimum level for both structlog and stdlib loggers.
    """
    logging.basicConfig(level=level, stream=sys.stderr, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
    )
