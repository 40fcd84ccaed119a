"""
computejobs logging - structlog setup shared by callers and worker threads.

Manifesto:
    A computation fails on a pool thread, long after ``submit()`` returned.
    The only way to connect the two is the log line, so every event emitted
    while a job runs carries its ``job_id`` and the worker thread name, and
    the same event names (``jobs.submitted``, ``jobs.completed``, ...) are
    used whether the output goes to a terminal or a log shipper.

Architecture:
    ::

        configure_logging(level, json_format, service)
            ↓
        TimeStamper → merge_contextvars → add_log_level → _add_service
          → _add_thread → [JSON: _ecs_fields → format_exc_info] → renderer

        with job_log_context(job_id):        # runner, per execution
            logger.info("jobs.completed")    # carries job_id + thread

Examples:
    >>> from computejobs.core.logging import configure_logging, get_logger
    >>> configure_logging("DEBUG", json_format=False)
    >>> get_logger(__name__).debug("jobs.cache_stale", job_id="abc123")

Tags:
    logging, structlog, observability, computejobs
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service = "computejobs"


def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _service)
    return event_dict


def _add_thread(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    # Pool threads are named "computejobs_N"; the caller's thread otherwise.
    event_dict.setdefault("thread", threading.current_thread().name)
    return event_dict


def _ecs_fields(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Rename timestamp, level and logger name to their ECS field names."""
    for ours, ecs in (
        ("timestamp", "@timestamp"),
        ("level", "log.level"),
        ("logger_name", "log.logger"),
    ):
        if ours in event_dict:
            event_dict[ecs] = event_dict.pop(ours)
    return event_dict


def _processors(json_format: bool, timestamps: bool) -> list[Processor]:
    chain: list[Processor] = []
    if timestamps:
        chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service,
        _add_thread,
    ]
    if json_format:
        chain += [
            _ecs_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "computejobs",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the job system.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, console when False; auto-detected
            (JSON unless stdout is a terminal) when None
        service: Value of the ``service.name`` field
        add_timestamp: Stamp events with an ISO-8601 UTC timestamp
    """
    global _service
    _service = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_settings(settings: Any) -> None:
    """Configure logging from ``log_level`` / ``log_format`` of a settings object."""
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format.lower() == "json",
    )


def get_logger(name: str | None = None) -> Any:
    """Return a lazy structlog logger carrying ``logger_name`` when a name is given.

    The proxy resolves the configuration on first use, so module-level
    loggers pick up a later :func:`configure_logging` call.
    """
    if name is None:
        return structlog.get_logger()
    # ``logger`` is taken by wrap_logger's own first parameter.
    return structlog.get_logger(logger_name=name)


@contextmanager
def job_log_context(job_id: str, **extra: Any) -> Iterator[None]:
    """Attach *job_id* (and *extra*) to every event logged in the block."""
    with structlog.contextvars.bound_contextvars(job_id=job_id, **extra):
        yield


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "job_log_context",
    "clear_context",
]
