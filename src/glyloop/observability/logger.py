"""Structured logging for the core and the CLI.

The core modules log through ``logging.getLogger(__name__)``;
``setup_logging`` routes those records through the same structlog
pipeline as ``get_logger`` loggers, so both come out as one JSON (or
console) stream carrying the active ``correlation_id``.

A request handler opens a :func:`correlation_scope`; journal commands
issued inside it stamp their audit records with the scope's id.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

from glyloop.core.errors import ConfigError
from glyloop.core.ids import new_id

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

LOG_FORMATS = ("json", "console")
HANDLER_NAME = "glyloop"


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever ``sys.stderr`` is when the record is emitted."""

    def __init__(self, level: int = logging.NOTSET) -> None:
        logging.Handler.__init__(self, level)

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr


def current_correlation_id() -> str:
    """Correlation id of the active scope, or ``""`` outside any scope."""
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None, **context: Any) -> Iterator[str]:
    """Bind a correlation id (fresh unless given) plus extra log context.

    ``with correlation_scope(user_id=str(user)) as cid: ...``
    """
    cid = correlation_id or new_id()
    token = _correlation_id.set(cid)
    with structlog.contextvars.bound_contextvars(**context):
        try:
            yield cid
        finally:
            _correlation_id.reset(token)


def _add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: stamp the active correlation id, if any."""
    cid = _correlation_id.get()
    if cid:
        event_dict.setdefault("correlation_id", cid)
    return event_dict


def shared_processors() -> list[Any]:
    """Steps applied to structlog and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        _add_correlation_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(format: str) -> Any:
    if format == "json":
        return structlog.processors.JSONRenderer()
    if format == "console":
        return structlog.dev.ConsoleRenderer()
    raise ConfigError(f"Unknown log format {format!r}; expected one of {LOG_FORMATS}")


def setup_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for machine consumption, "console" for a terminal.

    Raises:
        ConfigError: unknown *format*.
    """
    renderer = _renderer(format)
    shared = shared_processors()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = _StderrHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
