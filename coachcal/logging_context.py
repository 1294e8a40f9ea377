"""Session ID logging context for tracing one user's actions across modules.

Provides a session-aware logger that attaches the acting user's id to
every log record, making it easy to follow a single booking or calendar
edit through the repository, lifecycle and notification layers.

Usage:
    from coachcal.logging_context import get_session_logger, set_session_id

    set_session_id("user-123")
    logger = get_session_logger(__name__)
    logger.info("Cancelling booking")  # record.session_id == "user-123"
"""

import logging
from contextvars import ContextVar

_session_id: ContextVar[str] = ContextVar("session_id", default="ANONYMOUS")


def set_session_id(session_id: str) -> None:
    """Set the acting user's id for the current async context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Retrieve the current session id."""
    return _session_id.get()


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
