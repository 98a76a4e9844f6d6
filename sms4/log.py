"""
SMS4: Structured logging setup.

Modules log through stdlib ``logging.getLogger(__name__)``. This routes
those records, and any structlog loggers, through one handler on the
``sms4`` logger that renders them with structlog (JSON or console).
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from sms4.config import Sms4Settings, settings as default_settings

ROOT_LOGGER = "sms4"

_handler: logging.Handler | None = None


def configure_logging(
    settings: Sms4Settings | None = None,
    stream: TextIO | None = None,
) -> logging.Handler:
    """
    Configure structured logging for the ``sms4`` logger tree.

    Calling it again replaces the handler installed by the previous call.

    Returns:
        The installed handler.
    """
    settings = settings or default_settings
    level = logging.getLevelName(settings.log_level.upper())

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    global _handler
    logger = logging.getLogger(ROOT_LOGGER)
    if _handler is not None:
        logger.removeHandler(_handler)
    _handler = handler
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
