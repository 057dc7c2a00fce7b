"""Structured logging setup using structlog.

Implements a **dual-renderer pattern**: one shared processor chain feeds
either a coloured ConsoleRenderer (development) or a JSONRenderer
(production).  The host picks the renderer through ``json_output``; the
engine never inspects the environment itself.

Standard-library ``logging`` is bridged through the same formatter so
uvicorn and aiosqlite records look like engine records.  uvicorn's access
log is quieted because ``RequestLoggingMiddleware`` already emits an
``http_request`` event per request, and aiosqlite's per-statement debug
chatter is quieted because the persistence providers log their own
operations.
"""

import logging
import sys

import structlog

from tunequeue.utils.errors import ConfigurationError

# Third-party loggers raised to WARNING regardless of the engine level.
QUIET_LOGGERS: tuple[str, ...] = ("uvicorn.access", "aiosqlite")


def resolve_level(log_level: str) -> int:
    """Map a level name such as ``"debug"`` to its numeric value.

    Raises
    ------
    ConfigurationError
        If *log_level* is not a standard logging level name.
    """
    level = logging.getLevelNamesMapping().get(log_level.strip().upper())
    if level is None:
        raise ConfigurationError(message=f"Unknown log level {log_level!r}")
    return level


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    quiet_loggers: tuple[str, ...] = QUIET_LOGGERS,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib bridge.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL), any case.
        json_output: JSON lines when True, coloured console output otherwise.
        quiet_loggers: stdlib logger names capped at WARNING.

    Returns:
        A configured structlog BoundLogger.
    """
    level = resolve_level(log_level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structlog logger bound with ``logger_name``.

    Configures logging with defaults on first use if the host has not.
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
