"""
Conflict detection between a candidate time range and existing bookings.

The pure predicates are used while generating slots. ``ensure_free`` and
``rejects`` guard the write path: the first is a read-time pre-check, the
second is handed to the store's conditional insert so the check and the
write happen atomically on the storage side.
"""

import logging
from datetime import datetime
from typing import Any, Iterable

from coachcal.errors import ConflictError, PersistenceError
from coachcal.schemas.booking_schema import Booking, BookingStatus
from coachcal.scheduling.intervals import overlaps
from coachcal.store.base import RecordStore, RowPredicate, StoreError, eq, gte, lt, lte, neq
from coachcal.utils import to_local

logger = logging.getLogger(__name__)

APPOINTMENTS = "appointments"


def conflicting(start: datetime, end: datetime, bookings: Iterable[Booking]) -> list[Booking]:
    """Active bookings whose range overlaps ``[start, end)``."""
    return [
        b for b in bookings
        if b.is_active and overlaps(start, end, b.start_time, b.end_time)
    ]


def has_conflict(start: datetime, end: datetime, bookings: Iterable[Booking]) -> bool:
    return bool(conflicting(start, end, bookings))


def rejects(trainer_id: str, start: datetime, end: datetime) -> RowPredicate:
    """Row predicate matching active appointments of ``trainer_id`` that overlap the range."""

    def _predicate(row: dict[str, Any]) -> bool:
        return (
            row.get("trainer_id") == trainer_id
            and row.get("status") != BookingStatus.CANCELLED.value
            and overlaps(start, end, to_local(row["start_time"]), to_local(row["end_time"]))
        )

    return _predicate


class ConflictChecker:
    """Pre-persist conflict check against the stored appointments."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def active_bookings_between(
        self, trainer_id: str, window_start: datetime, window_end: datetime
    ) -> list[Booking]:
        """Non-cancelled bookings of a trainer starting in ``[window_start, window_end]``."""
        try:
            rows = await self._store.select(
                APPOINTMENTS,
                eq("trainer_id", trainer_id),
                gte("start_time", window_start),
                lte("start_time", window_end),
                neq("status", BookingStatus.CANCELLED.value),
                order_by=("start_time",),
            )
        except StoreError as exc:
            raise PersistenceError(f"Loading bookings of {trainer_id} failed: {exc}") from exc
        return [Booking.model_validate(row) for row in rows]

    async def ensure_free(self, trainer_id: str, start: datetime, end: datetime) -> None:
        """Raise ConflictError when an active booking of the trainer overlaps the range.

        Only state visible at read time is consulted; the conditional insert
        built by ``rejects`` closes the gap between this check and the write.
        """
        try:
            rows = await self._store.select(
                APPOINTMENTS,
                eq("trainer_id", trainer_id),
                neq("status", BookingStatus.CANCELLED.value),
                lt("start_time", end),
            )
        except StoreError as exc:
            raise PersistenceError(f"Conflict check for {trainer_id} failed: {exc}") from exc
        clashes = conflicting(start, end, (Booking.model_validate(r) for r in rows))
        if clashes:
            logger.info(
                "Range %s-%s of trainer %s clashes with %s",
                start, end, trainer_id, [b.id for b in clashes],
            )
            raise ConflictError(f"{len(clashes)} overlapping booking(s)")
