"""Structured logging for the loot engine.

Uses structlog on top of the stdlib ``logging`` module so that core modules
can keep using ``logging.getLogger(__name__)`` while handlers emit
structured records through ``get_logger``.  Every entry carries a
``dispatch_id`` that groups the records produced while one account's event
batch is delivered.
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

_dispatch_id: ContextVar[str] = ContextVar("dispatch_id", default="")


def get_dispatch_id() -> str:
    """Current dispatch ID, or an empty string outside a dispatch."""
    return _dispatch_id.get()


def new_dispatch_id() -> str:
    """Generate and set a new dispatch ID."""
    did = str(uuid.uuid4())
    _dispatch_id.set(did)
    return did


@contextmanager
def dispatch_scope() -> Iterator[str]:
    """Set a fresh dispatch ID for the body and restore the previous one after."""
    did = str(uuid.uuid4())
    token = _dispatch_id.set(did)
    try:
        yield did
    finally:
        _dispatch_id.reset(token)


def _add_dispatch_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add dispatch_id when one is set."""
    did = _dispatch_id.get()
    if did:
        event_dict["dispatch_id"] = did
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for production, "console" for development.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        _add_dispatch_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
