"""
Structured Logging Configuration
=================================

Configures structlog for the harness with optional JSON output.
"""

import sys
import logging
import structlog
from typing import Optional


def configure_logging(level: str = "INFO", json_output: bool = False):
    """
    Configure structured logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, output JSON formatted logs
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=handlers,
        force=True
    )

    # aiohttp is chatty at DEBUG
    logging.getLogger("aiohttp").setLevel(max(log_level, logging.INFO))

    shared = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]

    if json_output:
        processors = shared + [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ]
    else:
        processors = shared + [
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    """
    Get a configured logger instance.

    Args:
        name: Optional logger name

    Returns:
        structlog BoundLogger instance
    """
    return structlog.get_logger(name)
