"""
Booking status state machine.

    pending   --confirm--> confirmed
    pending   --cancel---> cancelled
    confirmed --cancel---> cancelled

``cancelled`` is terminal. A booking may also start life as ``confirmed``
when the trainer has auto-confirmation turned on.

Usage:
    next_status = BookingStateMachine.next_status(BookingStatus.PENDING, BookingAction.CONFIRM)
    assert next_status == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from enum import Enum

from coachcal.errors import InvalidStateError
from coachcal.messages import message_templates, user_messages as msg
from coachcal.schemas.availability_schema import ConfirmationMode
from coachcal.schemas.booking_schema import BookingStatus

logger = logging.getLogger(__name__)


class BookingAction(str, Enum):
    """Events that move a booking between statuses."""
    CONFIRM = "confirm"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    action: BookingAction


class BookingStateMachine:
    """Explicit transition table for booking statuses."""

    TRANSITIONS: list[Transition] = [
        Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingAction.CONFIRM),
        Transition(BookingStatus.PENDING, BookingStatus.CANCELLED, BookingAction.CANCEL),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingAction.CANCEL),
    ]

    @staticmethod
    def initial_status(mode: ConfirmationMode) -> BookingStatus:
        """Status a newly created booking starts in."""
        return BookingStatus.CONFIRMED if mode == ConfirmationMode.AUTO else BookingStatus.PENDING

    @classmethod
    def next_status(cls, current: BookingStatus, action: BookingAction) -> BookingStatus:
        """
        Resolve the status reached by applying ``action`` to ``current``.

        Raises:
            InvalidStateError: If ``action`` is not allowed from ``current``.
        """
        for t in cls.TRANSITIONS:
            if t.from_status == current and t.action == action:
                logger.debug("Booking transition: %s -> %s (%s)", current.value, t.to_status.value, action.value)
                return t.to_status

        allowed = [a.value for a in cls.allowed_actions(current)]
        detail = (
            f"No transition from '{current.value}' with action '{action.value}'. "
            f"Allowed actions: {allowed}"
        )
        if current == BookingStatus.CANCELLED:
            raise InvalidStateError(detail, user_message=msg.ALREADY_CANCELLED)
        if action == BookingAction.CONFIRM:
            raise InvalidStateError(detail, user_message=message_templates.not_confirmable_message(current.value))
        raise InvalidStateError(detail)

    @classmethod
    def allowed_actions(cls, current: BookingStatus) -> list[BookingAction]:
        """Return all actions valid from ``current``."""
        return [t.action for t in cls.TRANSITIONS if t.from_status == current]

    @classmethod
    def is_terminal(cls, status: BookingStatus) -> bool:
        return not cls.allowed_actions(status)
