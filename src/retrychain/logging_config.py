"""Structured logging setup for applications using retrychain.

The library only emits events through ``structlog.get_logger``; importing it
never touches logging configuration. ``configure_logging`` is an opt-in
helper for applications (and scripts) that want retry events rendered
without setting structlog up themselves. Its defaults come from
``RETRYCHAIN_LOG_LEVEL`` and ``RETRYCHAIN_ENVIRONMENT``.
"""

import logging
import sys
from typing import IO, Optional

import structlog
from structlog.types import EventDict, WrappedLogger

from retrychain.config import settings


def add_library_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event with the emitting library."""
    event_dict["library"] = "retrychain"
    return event_dict


def format_retry_error(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Render the ``error`` field of retry events as text.

    Attempt and give-up events carry the operation's exception object under
    ``error``. Renderers get ``error_type`` plus the message instead, so JSON
    output stays serializable and greppable by exception class.
    """
    error = event_dict.get("error")
    if isinstance(error, BaseException):
        event_dict["error_type"] = type(error).__name__
        event_dict["error"] = str(error)
    return event_dict


def configure_logging(
    log_level: Optional[str] = None,
    environment: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure structlog and stdlib logging to render retry events.

    Args:
        log_level: Level name (DEBUG shows every scheduled retry); defaults
            to ``settings.LOG_LEVEL``
        environment: ``production`` selects JSON output, anything else the
            console renderer; defaults to ``settings.ENVIRONMENT``
        stream: Output stream (default: stdout)
    """
    log_level = log_level or settings.LOG_LEVEL
    environment = environment or settings.ENVIRONMENT
    stream = stream or sys.stdout
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_library_context,
        format_retry_error,
    ]

    is_production = environment.lower() == "production"
    if is_production:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared_processors)
    )
    handler.setLevel(log_level_int)

    root_logger = logging.getLogger()
    # Replace rather than stack handlers when called twice
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
