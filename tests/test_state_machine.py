"""Tests for the booking status state machine."""

import pytest

from coachcal.booking.state_machine import BookingAction, BookingStateMachine
from coachcal.errors import InvalidStateError
from coachcal.messages import user_messages as msg
from coachcal.schemas.availability_schema import ConfirmationMode
from coachcal.schemas.booking_schema import BookingStatus


class TestInitialStatus:
    def test_manual_mode_starts_pending(self):
        assert BookingStateMachine.initial_status(ConfirmationMode.MANUAL) == BookingStatus.PENDING

    def test_auto_mode_starts_confirmed(self):
        assert BookingStateMachine.initial_status(ConfirmationMode.AUTO) == BookingStatus.CONFIRMED


class TestValidTransitions:
    def test_pending_confirm(self):
        assert BookingStateMachine.next_status(
            BookingStatus.PENDING, BookingAction.CONFIRM
        ) == BookingStatus.CONFIRMED

    def test_pending_cancel(self):
        assert BookingStateMachine.next_status(
            BookingStatus.PENDING, BookingAction.CANCEL
        ) == BookingStatus.CANCELLED

    def test_confirmed_cancel(self):
        assert BookingStateMachine.next_status(
            BookingStatus.CONFIRMED, BookingAction.CANCEL
        ) == BookingStatus.CANCELLED


class TestInvalidTransitions:
    def test_confirming_confirmed_booking(self):
        with pytest.raises(InvalidStateError) as info:
            BookingStateMachine.next_status(BookingStatus.CONFIRMED, BookingAction.CONFIRM)
        assert "confirmed" in info.value.user_message

    def test_confirming_cancelled_booking(self):
        with pytest.raises(InvalidStateError) as info:
            BookingStateMachine.next_status(BookingStatus.CANCELLED, BookingAction.CONFIRM)
        assert info.value.user_message == msg.ALREADY_CANCELLED

    def test_cancelling_cancelled_booking(self):
        with pytest.raises(InvalidStateError) as info:
            BookingStateMachine.next_status(BookingStatus.CANCELLED, BookingAction.CANCEL)
        assert info.value.user_message == msg.ALREADY_CANCELLED


class TestQueries:
    def test_allowed_actions_from_pending(self):
        assert set(BookingStateMachine.allowed_actions(BookingStatus.PENDING)) == {
            BookingAction.CONFIRM, BookingAction.CANCEL,
        }

    def test_allowed_actions_from_confirmed(self):
        assert BookingStateMachine.allowed_actions(BookingStatus.CONFIRMED) == [BookingAction.CANCEL]

    def test_only_cancelled_is_terminal(self):
        assert BookingStateMachine.is_terminal(BookingStatus.CANCELLED)
        assert not BookingStateMachine.is_terminal(BookingStatus.PENDING)
        assert not BookingStateMachine.is_terminal(BookingStatus.CONFIRMED)

    def test_every_transition_targets_a_known_status(self):
        for t in BookingStateMachine.TRANSITIONS:
            assert t.to_status in BookingStatus
            assert t.from_status != BookingStatus.CANCELLED
