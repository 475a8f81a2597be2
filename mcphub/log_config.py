"""Structured logging setup.

Modules log through ``structlog.get_logger(__name__)`` with key-value
events; this configures the processors and renderer once at startup.
"""

import logging
import sys

import structlog
from structlog.types import Processor


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        log_level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_output: Emit JSON lines instead of the console renderer.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and httpx log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
