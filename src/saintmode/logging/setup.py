"""Structured logging setup for applications embedding the cache.

Library modules log through ``structlog.get_logger("saintmode.<area>")``;
nothing is printed until the host calls :func:`setup_logging`. Cache events
are mostly DEBUG (creates, refreshes, cancellations) with
``cache_refresh_failed`` at ERROR, so ``library_level`` lets an application
turn them on without lowering its own level.
"""

from __future__ import annotations

import logging
import sys

import structlog

LIBRARY_LOGGER = "saintmode"

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    if log_format != "json":
        raise ValueError(f"log_format must be 'json' or 'console', got {log_format!r}")
    return structlog.processors.JSONRenderer()


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level {name!r}")
    return level


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    library_level: str | None = None,
) -> None:
    """Route structlog through the stdlib root logger on stderr.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" for production, "console" for development.
        library_level: Level for the ``saintmode`` logger namespace only.
            None makes it follow the root level.
    """
    root_level = _level(level)
    library = logging.NOTSET if library_level is None else _level(library_level)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(log_format),
        ],
        foreign_pre_chain=_SHARED_PROCESSORS,
    )

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(root_level)
    logging.getLogger(LIBRARY_LOGGER).setLevel(library)


def get_logger(name: str | None = None, **initial_context) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally pre-bound with context (e.g. ``cache="sessions"``)."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
