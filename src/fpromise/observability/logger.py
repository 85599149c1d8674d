"""Structured logging.

Library modules log through stdlib ``logging.getLogger(__name__)`` so
that embedding applications stay in control. ``setup_logging`` installs
one root handler whose structlog ``ProcessorFormatter`` renders both
those stdlib records and application loggers from ``get_logger`` in
the same JSON or console format.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog

from fpromise.core.config import ObservabilityConfig
from fpromise.core.enums import LogFormat

HANDLER_NAME = "fpromise"


def _add_component(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: tag entries with the top-level package name."""
    name = event_dict.get("logger") or ""
    event_dict.setdefault("component", name.split(".", 1)[0] or "fpromise")
    return event_dict


def _shared_processors() -> list[Any]:
    # Applied to structlog events and to foreign stdlib records alike.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        _add_component,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(format: str | LogFormat) -> Any:
    if LogFormat(format) is LogFormat.JSON:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(
    level: str = "INFO",
    format: str | LogFormat = LogFormat.JSON,
    *,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Configure structured logging for the application.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). DEBUG shows
            Deferred settlements.
        format: "json" for production, "console" for development.
        stream: Output stream, stderr by default.

    Returns:
        The installed root handler.
    """
    renderer = _renderer(format)
    log_level = getattr(logging, level.upper(), logging.INFO)
    shared = _shared_processors()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)
    return handler


def setup_logging_from_config(
    config: ObservabilityConfig, *, stream: IO[str] | None = None
) -> logging.Handler:
    return setup_logging(level=config.log_level, format=config.log_format, stream=stream)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
