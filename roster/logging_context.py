"""Roster session logging context for tracing one dashboard session.

Provides a session-aware logger that attaches the roster session ID to
every log message, so a single user's filter clicks, fetches, and imports
can be followed through interleaved async work.

Usage:
    from roster.logging_context import get_session_logger, session_scope

    logger = get_session_logger(__name__)
    with session_scope("ROSTER-abc123"):
        logger.info("Fetching page")  # record.session_id == "ROSTER-abc123"
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_session_id: ContextVar[str] = ContextVar("roster_session_id", default="NO_SESSION")


def new_session_id() -> str:
    """Generate a fresh roster session ID."""
    return f"ROSTER-{uuid.uuid4().hex[:8]}"


def set_session_id(session_id: str) -> None:
    """Set the roster session ID for the current async context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Retrieve the current roster session ID."""
    return _session_id.get()


@contextmanager
def session_scope(session_id: str) -> Iterator[str]:
    """Bind ``session_id`` for the duration of a block, then restore the previous one."""
    token = _session_id.set(session_id)
    try:
        yield session_id
    finally:
        _session_id.reset(token)


class SessionIdFilter(logging.Filter):
    """Injects session_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return a logger with the SessionIdFilter attached.

    The filter adds ``session_id`` to each record so formatters can
    include ``%(session_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
