# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

Both kinds of log call in the code base end up on one handler:

- ``logging.getLogger(__name__).info("User %s logged in", user_id)``
- ``get_logger(__name__).warning("role_extension_missing", user_id=7)``

Each record passes the same processor chain, so request context bound by
the authentication middleware (``user_id``, ``role``) is attached to every
line, and the renderer is chosen once: colored console output in
development, JSON lines everywhere else.

Example:
    >>> from amistapp.utils.logging import setup_logging, get_logger
    >>> from amistapp.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> logger = get_logger(__name__)
    >>> logger.info("user_registered", user_id=42, role="student")
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from amistapp.core.config.settings import Settings

QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy", "aiosqlite", "asyncio", "httpx")

_HANDLER_NAME = "amistapp"


def _context_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(settings: "Settings") -> list[Processor]:
    if settings.is_development or settings.debug:
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ]


def build_handler(settings: "Settings") -> logging.Handler:
    """Create the stdout handler that renders every record through structlog.

    Args:
        settings: Application settings selecting console or JSON output.

    Returns:
        A stream handler carrying a structlog ProcessorFormatter.
    """
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_context_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderer(settings),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)
    return handler


def setup_logging(settings: "Settings") -> None:
    """Configure structured logging for the application.

    Safe to call more than once; the previous handler is replaced.

    Args:
        settings: Application settings containing log_level and debug flag.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_context_processors(),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # setup_logging may run again with different settings
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)
    root.addHandler(build_handler(settings))
    root.setLevel(log_level)

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("amistapp").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for the given module name."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Attach key-value pairs to every log line in the current context.

    Example:
        >>> bind_context(user_id=42, role="teacher")
        >>> logger.info("profile_requested")  # includes user_id and role
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound context so it does not leak into the next request."""
    structlog.contextvars.clear_contextvars()
