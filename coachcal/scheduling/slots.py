"""
Bookable date and slot generation.

Turns a trainer's weekly availability windows plus the day's existing
bookings into candidate slots of exactly one service's duration.

Usage:
    generator = SlotGenerator(store, sink=messages)
    dates = await generator.available_dates("trainer-1", date.today())
    slots = await generator.available_slots("trainer-1", "service-1", dates[0])
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from coachcal.config import settings
from coachcal.errors import SchedulingError
from coachcal.feedback import MessageLevel, MessageLog, MessageSink, UserMessage
from coachcal.messages import user_messages as msg
from coachcal.schemas.availability_schema import AvailabilityWindow
from coachcal.schemas.booking_schema import Booking, TimeSlot
from coachcal.scheduling.availability import AvailabilityRepository
from coachcal.scheduling.conflicts import ConflictChecker, has_conflict
from coachcal.scheduling.intervals import anchor, day_bounds, step_time
from coachcal.scheduling.services import ServiceCatalog
from coachcal.store.base import RecordStore
from coachcal.utils import Clock, system_clock, weekday_index

logger = logging.getLogger(__name__)


def slots_for_window(
    day: date,
    window: AvailabilityWindow,
    duration: int,
    time_step: int,
    booked: list[Booking],
) -> list[TimeSlot]:
    """Accepted slots of one availability window, in chronological order.

    The cursor advances by ``time_step``, not by ``duration``, so
    consecutive slots may overlap each other. Only clashes with existing
    bookings are filtered out.
    """
    window_end = anchor(day, window.end_time)
    cursor = anchor(day, window.start_time)
    accepted = []
    while step_time(cursor, duration) <= window_end:
        slot_end = step_time(cursor, duration)
        if not has_conflict(cursor, slot_end, booked):
            accepted.append(TimeSlot(start_time=cursor, end_time=slot_end))
        cursor = step_time(cursor, time_step)
    return accepted


class SlotGenerator:
    """Computes bookable dates and time slots on demand."""

    def __init__(
        self,
        store: RecordStore,
        sink: Optional[MessageSink] = None,
        clock: Clock = system_clock,
    ) -> None:
        self._sink = sink if sink is not None else MessageLog()
        self._clock = clock
        self._availability = AvailabilityRepository(store, self._sink)
        self._services = ServiceCatalog(store)
        self._conflicts = ConflictChecker(store)
        self.loading = False
        self.last_error: Optional[SchedulingError] = None

    async def available_dates(
        self,
        trainer_id: str,
        start_date: Union[date, datetime],
        horizon_days: Optional[int] = None,
    ) -> list[date]:
        """Dates within the horizon on whose weekday the trainer has availability.

        Days strictly before today are skipped. Returns ``[]`` with a
        warning when the trainer has no availability at all.
        """
        if not trainer_id:
            self._show(msg.TITLE_ERROR, msg.MISSING_TRAINER, MessageLevel.ERROR)
            return []
        if horizon_days is None:
            horizon_days = settings.scheduling.booking_horizon_days
        if isinstance(start_date, datetime):
            start_date = start_date.date()

        self.loading = True
        self.last_error = None
        try:
            windows = await self._availability.availability_for(trainer_id)
            if not windows:
                self._show(msg.TITLE_NO_AVAILABILITY, msg.NO_AVAILABILITY, MessageLevel.WARNING)
                return []

            weekdays = {w.day_of_week for w in windows}
            today = self._clock().date()
            dates = []
            for offset in range(horizon_days):
                day = start_date + timedelta(days=offset)
                if day < today:
                    continue
                if weekday_index(day) in weekdays:
                    dates.append(day)
            logger.debug("Trainer %s has %d bookable dates", trainer_id, len(dates))
            return dates
        except SchedulingError as exc:
            logger.error("Listing available dates of %s failed: %s", trainer_id, exc)
            self.last_error = exc
            self._show(msg.TITLE_ERROR, msg.DATES_FAILED, MessageLevel.ERROR)
            return []
        finally:
            self.loading = False

    async def available_slots(
        self, trainer_id: str, service_id: str, day: Union[date, datetime]
    ) -> list[TimeSlot]:
        """Free slots of ``service_id``'s duration on ``day``.

        Windows on the same day are processed independently and their
        slots concatenated in window order.
        """
        if not trainer_id or not service_id:
            self._show(msg.TITLE_ERROR, msg.MISSING_TRAINER_OR_SERVICE, MessageLevel.ERROR)
            return []
        if isinstance(day, datetime):
            day = day.date()

        self.loading = True
        self.last_error = None
        try:
            service = await self._services.get(service_id)
            trainer_settings = await self._availability.settings_for(trainer_id)
            windows = await self._availability.availability_for(trainer_id)
            if not windows:
                self._show(msg.TITLE_NO_AVAILABILITY, msg.NO_AVAILABILITY, MessageLevel.WARNING)
                return []

            day_windows = [w for w in windows if w.day_of_week == weekday_index(day)]
            if not day_windows:
                self._show(msg.TITLE_NO_AVAILABILITY, msg.NO_AVAILABILITY_ON_DAY, MessageLevel.INFO)
                return []

            start_of_day, end_of_day = day_bounds(day)
            booked = await self._conflicts.active_bookings_between(trainer_id, start_of_day, end_of_day)

            slots: list[TimeSlot] = []
            for window in day_windows:
                slots.extend(
                    slots_for_window(day, window, service.duration, trainer_settings.time_step, booked)
                )
            logger.debug(
                "Generated %d slots for trainer %s, service %s on %s",
                len(slots), trainer_id, service_id, day,
            )
            return slots
        except SchedulingError as exc:
            logger.error("Generating slots for %s on %s failed: %s", trainer_id, day, exc)
            self.last_error = exc
            self._show(msg.TITLE_ERROR, msg.SLOTS_FAILED, MessageLevel.ERROR)
            return []
        finally:
            self.loading = False

    def _show(self, title: str, description: str, level: MessageLevel) -> None:
        self._sink.show(UserMessage(title=title, description=description, level=level))
