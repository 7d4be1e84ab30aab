"""Structured logging configuration using *structlog*.

Every log line emitted while a sensor session is running carries a
``session`` field, bound through :func:`bind_session` when the engine starts
and dropped by :func:`clear_session` when it stops.
"""

from __future__ import annotations

import logging
import sys
import uuid

import structlog


def setup_logging(level: str = "INFO", *, json_output: bool | None = None) -> None:
    """Configure *structlog* processors and the level filter.

    Call once at application startup.  By default events render through the
    console renderer on a terminal and as JSON lines otherwise; pass
    *json_output* to force either.
    """
    if json_output is None:
        json_output = not sys.stderr.isatty()

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_session(session_id: str | None = None) -> str:
    """Tag subsequent log lines with a sensor-session id and return it."""
    session_id = session_id or uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(session=session_id)
    return session_id


def clear_session() -> None:
    structlog.contextvars.unbind_contextvars("session")
