"""
Structured Logging

Every significant action (expense created, deleted, rejected, storage
fallbacks) is logged as a key/value event through structlog, on top of
the standard library logging backend.

Call configure_logging() once at startup. Modules get their logger with
structlog.get_logger(__name__).
"""

import logging
import sys
from typing import Optional

import structlog

from coinshire.config import get_settings


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Minimum log level name. Defaults to the configured level.
        json_output: Render JSON lines instead of console output.
                     Defaults to the configured value.
    """
    settings = get_settings().app
    level = level or settings.log_level
    if json_output is None:
        json_output = settings.log_json

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
