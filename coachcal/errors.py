"""Error taxonomy for the scheduling engine.

Every error carries a short ``user_message`` that the operation boundary
shows to the user; the exception's own text is meant for logs.
"""

from typing import Optional

from coachcal.messages import user_messages as msg


class SchedulingError(Exception):
    """Base class for all engine errors surfaced to the user."""

    default_user_message = msg.GENERIC_FAILURE

    def __init__(self, detail: str = "", user_message: Optional[str] = None) -> None:
        super().__init__(detail or self.default_user_message)
        self.user_message = user_message or self.default_user_message


class AuthenticationRequiredError(SchedulingError):
    """No authenticated caller is attached to the session."""

    default_user_message = msg.LOGIN_REQUIRED


class NotFoundError(SchedulingError):
    """A trainer, service, booking or calendar item does not exist."""

    default_user_message = msg.NOT_FOUND


class AuthorizationError(SchedulingError):
    """The caller is neither the trainer nor the client on the record."""

    default_user_message = msg.NOT_AUTHORIZED


class InvalidStateError(SchedulingError):
    """The requested status transition is not allowed from the current status."""

    default_user_message = msg.INVALID_STATE


class ConflictError(SchedulingError):
    """The requested time overlaps an active booking of the same trainer."""

    default_user_message = msg.SLOT_TAKEN


class ValidationError(SchedulingError):
    """Input rejected before reaching the store."""

    default_user_message = msg.INVALID_INPUT


class PersistenceError(SchedulingError):
    """The backing store failed to read or write."""

    default_user_message = msg.GENERIC_FAILURE
