"""Tests for interval arithmetic and conflict predicates."""

from datetime import date, datetime, time

import pytest

from coachcal.schemas.booking_schema import Booking
from coachcal.scheduling.conflicts import conflicting, has_conflict, rejects
from coachcal.scheduling.intervals import anchor, day_bounds, overlaps, step_time
from tests.conftest import MONDAY, at, make_booking


def _booking(start: datetime, end: datetime, status: str = "confirmed", booking_id: str = "b-1") -> Booking:
    return Booking.model_validate(make_booking(start, end, status=status, booking_id=booking_id))


class TestOverlaps:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((9, 10), (9, 10), True),       # identical
            ((9, 10), (9.5, 11), True),     # A ends inside B
            ((9.5, 11), (9, 10), True),     # A starts inside B
            ((8, 12), (9, 10), True),       # A contains B
            ((9, 10), (8, 12), True),       # B contains A
            ((9, 10), (10, 11), False),     # touching at A's end
            ((10, 11), (9, 10), False),     # touching at A's start
            ((9, 10), (11, 12), False),     # disjoint
        ],
    )
    def test_cases(self, a, b, expected):
        def t(h):
            return at(MONDAY, int(h), int((h % 1) * 60))

        assert overlaps(t(a[0]), t(a[1]), t(b[0]), t(b[1])) is expected

    def test_symmetric(self):
        a = (at(MONDAY, 9), at(MONDAY, 9, 30))
        b = (at(MONDAY, 9, 15), at(MONDAY, 9, 45))
        assert overlaps(*a, *b) == overlaps(*b, *a)


class TestTimeHelpers:
    def test_step_time_adds_minutes(self):
        assert step_time(at(MONDAY, 9), 45) == at(MONDAY, 9, 45)

    def test_step_time_crosses_midnight(self):
        assert step_time(at(MONDAY, 23, 50), 20) == datetime(2026, 10, 20, 0, 10)

    def test_anchor(self):
        assert anchor(MONDAY, time(9, 15)) == at(MONDAY, 9, 15)

    def test_day_bounds(self):
        start, end = day_bounds(date(2026, 10, 19))
        assert start == datetime(2026, 10, 19, 0, 0)
        assert end.date() == start.date()
        assert end.hour == 23 and end.minute == 59


class TestConflictPredicates:
    def test_overlapping_active_booking_conflicts(self):
        booked = [_booking(at(MONDAY, 9, 15), at(MONDAY, 9, 45))]
        assert has_conflict(at(MONDAY, 9, 15), at(MONDAY, 9, 45), booked)

    def test_touching_booking_does_not_conflict(self):
        booked = [_booking(at(MONDAY, 9, 15), at(MONDAY, 9, 45))]
        assert not has_conflict(at(MONDAY, 9, 45), at(MONDAY, 10, 15), booked)

    def test_cancelled_bookings_are_ignored(self):
        booked = [_booking(at(MONDAY, 9), at(MONDAY, 10), status="cancelled")]
        assert not has_conflict(at(MONDAY, 9), at(MONDAY, 10), booked)

    def test_pending_bookings_block(self):
        booked = [_booking(at(MONDAY, 9), at(MONDAY, 10), status="pending")]
        assert has_conflict(at(MONDAY, 9, 30), at(MONDAY, 10), booked)

    def test_conflicting_returns_only_clashes(self):
        booked = [
            _booking(at(MONDAY, 9), at(MONDAY, 9, 30), booking_id="early"),
            _booking(at(MONDAY, 11), at(MONDAY, 12), booking_id="late"),
        ]
        clashes = conflicting(at(MONDAY, 9, 15), at(MONDAY, 10), booked)
        assert [b.id for b in clashes] == ["early"]

    def test_rejects_predicate_scopes_to_trainer(self):
        predicate = rejects("trainer-1", at(MONDAY, 9), at(MONDAY, 10))
        own = make_booking(at(MONDAY, 9, 30), at(MONDAY, 10, 30))
        other = make_booking(at(MONDAY, 9, 30), at(MONDAY, 10, 30), trainer_id="trainer-2")
        cancelled = make_booking(at(MONDAY, 9, 30), at(MONDAY, 10, 30), status="cancelled")
        assert predicate(own)
        assert not predicate(other)
        assert not predicate(cancelled)

    def test_rejects_predicate_accepts_iso_strings(self):
        predicate = rejects("trainer-1", at(MONDAY, 9), at(MONDAY, 10))
        assert predicate(make_booking("2026-10-19T09:30:00", "2026-10-19T10:30:00"))
        assert not predicate(make_booking("2026-10-19T10:00:00", "2026-10-19T10:30:00"))
