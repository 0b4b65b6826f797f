"""
gws.logging — structlog on top of the stdlib "gws" logger.

Modules log through `get_logger(__name__)`:

    log = get_logger("gws.resolver")
    log.warning("resolver.duplicate_manifest", kind="projects")

Until `setup_logging` runs, "gws" only has a NullHandler, so importing gws
as a library prints nothing. The CLI calls `setup_logging` once per
invocation; it owns the "gws" logger and leaves the root logger alone.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

LOGGER_NAME = "gws"
FORMATS = ("console", "json")

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def get_logger(name: str = LOGGER_NAME):
    """structlog logger bound to the stdlib logger `name`.

    Processors and wrapper class are read from the structlog config on
    every use, so `setup_logging` (or a test's configuration) applies to
    loggers created at import time.
    """
    return structlog.wrap_logger(logging.getLogger(name))


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(level: str | None = None, fmt: str | None = None) -> logging.Handler:
    """Send gws log events to stderr.

    Args:
        level: Log level name (default: $GWS_LOG_LEVEL or WARNING)
        fmt: console | json (default: $GWS_LOG_FORMAT or console)

    Returns:
        The installed handler. Calling again replaces it.
    """
    log_level = (level or os.environ.get("GWS_LOG_LEVEL") or "WARNING").upper()
    log_format = (fmt or os.environ.get("GWS_LOG_FORMAT") or "console").lower()
    if log_format not in FORMATS:
        log_format = "console"

    shared = _processors()
    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format),
        ],
    ))

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        if not isinstance(old, logging.NullHandler):
            logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False
    return handler
