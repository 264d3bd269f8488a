"""
Logging setup.

Configures structlog once for the whole process. Console rendering by
default, JSON lines when TRIP_LOG_JSON is set.
"""

import logging

import structlog

from config.settings import get_settings


def configure_logging() -> None:
    """
    Configure stdlib logging and structlog from settings.

    Safe to call more than once; the last call wins.
    """
    settings = get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    # structlog hands rendered events to the stdlib root logger
    logging.basicConfig(format="%(message)s", level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
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
