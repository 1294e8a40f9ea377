"""
Booking lifecycle: create, confirm and cancel appointments.

Every public operation is a boundary: errors are logged, turned into a
short user message, stored on ``last_error`` and reported through the
return value (``None`` / ``False``). Nothing raises into the caller.

The local ``bookings`` cache only changes after the store has accepted
a write, and always with the row the store returned. When a write fails
in a way that may leave the cache behind the store, ``needs_refresh`` is
set so the caller knows to call ``list_bookings()`` again.
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Union

from coachcal.errors import (
    AuthenticationRequiredError,
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    SchedulingError,
    ValidationError,
)
from coachcal.feedback import MessageLevel, MessageLog, MessageSink, UserMessage
from coachcal.logging_context import get_session_logger, set_session_id
from coachcal.messages import message_templates, user_messages as msg
from coachcal.schemas.booking_schema import Booking, BookingStatus
from coachcal.schemas.session_schema import SessionUser
from coachcal.booking.notifications import NotificationService
from coachcal.booking.state_machine import BookingAction, BookingStateMachine
from coachcal.scheduling.availability import AvailabilityRepository
from coachcal.scheduling.conflicts import APPOINTMENTS, ConflictChecker, rejects
from coachcal.scheduling.intervals import anchor, step_time
from coachcal.scheduling.services import ServiceCatalog
from coachcal.store.base import (
    ConstraintViolation,
    RecordNotFound,
    RecordStore,
    StaleRecord,
    StoreError,
    eq,
)
from coachcal.utils import Clock, system_clock, to_local, weekday_index

logger = get_session_logger(__name__)


class BookingLifecycleManager:
    """Creates, confirms and cancels bookings on behalf of the session user."""

    def __init__(
        self,
        store: RecordStore,
        user: Optional[SessionUser],
        sink: Optional[MessageSink] = None,
        notifications: Optional[NotificationService] = None,
        clock: Clock = system_clock,
    ) -> None:
        self._store = store
        self._user = user
        self._sink = sink if sink is not None else MessageLog()
        self._notifications = notifications or NotificationService(store)
        self._clock = clock
        self._services = ServiceCatalog(store)
        self._availability = AvailabilityRepository(store, self._sink)
        self._conflicts = ConflictChecker(store)

        self.bookings: list[Booking] = []
        self.loading = False
        self.last_error: Optional[SchedulingError] = None
        self.needs_refresh = False

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    async def create_booking(
        self,
        trainer_id: str,
        service_id: str,
        start_time: Union[datetime, str],
        client_name: str,
        client_email: str,
        note: Optional[str] = None,
    ) -> Optional[Booking]:
        """Book ``service_id`` with ``trainer_id`` starting at ``start_time``.

        The booking starts ``confirmed`` when the trainer auto-confirms,
        in which case trainer and client are both notified; otherwise it
        starts ``pending``.
        """
        user = self._require_user()
        if user is None:
            return None

        self._begin()
        try:
            if not client_name or not client_name.strip():
                raise ValidationError("client_name is required")
            try:
                start = to_local(start_time)
            except ValueError as exc:
                raise ValidationError(f"Invalid start time {start_time!r}") from exc
            service = await self._services.get(service_id)
            end = step_time(start, service.duration)
            trainer_settings = await self._availability.settings_for(trainer_id)
            status = BookingStateMachine.initial_status(trainer_settings.confirmation_mode)

            await self._ensure_within_availability(trainer_id, start, end)
            await self._conflicts.ensure_free(trainer_id, start, end)

            now = self._clock()
            try:
                row = await self._store.insert(
                    APPOINTMENTS,
                    {
                        "trainer_id": trainer_id,
                        "client_id": user.id,
                        "service_id": service_id,
                        "title": message_templates.booking_title(client_name, service.name),
                        "description": note,
                        "start_time": start,
                        "end_time": end,
                        "status": status.value,
                        "is_recurring": False,
                        "created_at": now,
                        "updated_at": now,
                    },
                    reject_if=rejects(trainer_id, start, end),
                )
            except ConstraintViolation as exc:
                raise ConflictError(str(exc)) from exc
            except StoreError as exc:
                raise PersistenceError(f"Inserting booking failed: {exc}") from exc
        except SchedulingError as exc:
            self._fail("create", exc, msg.BOOKING_FAILED)
            return None
        finally:
            self.loading = False

        booking = Booking.model_validate(row)
        self._merge(booking)
        logger.info(
            "Booking %s created for %s <%s> with trainer %s at %s (%s)",
            booking.id, client_name, client_email, trainer_id, start, status.value,
        )

        if status == BookingStatus.CONFIRMED:
            await self._notifications.send_booking_created(booking, client_name, service.name)
            self._show(
                msg.TITLE_BOOKING_CONFIRMED,
                message_templates.booking_created_message(start),
                MessageLevel.SUCCESS,
            )
        else:
            self._show(msg.TITLE_BOOKING_PENDING, msg.BOOKING_PENDING, MessageLevel.INFO)
        return booking

    async def confirm_booking(self, booking_id: str) -> bool:
        """Move a pending booking to confirmed. Only the booking's trainer may do this."""
        user = self._require_user()
        if user is None:
            return False

        self._begin()
        try:
            booking = await self._load(booking_id)
            if booking.trainer_id != user.id:
                logger.warning(
                    "User %s tried to confirm booking %s of trainer %s",
                    user.id, booking_id, booking.trainer_id,
                )
                raise AuthorizationError(f"{user.id} is not the trainer of {booking_id}")
            new_status = BookingStateMachine.next_status(booking.status, BookingAction.CONFIRM)
            updated = await self._write_status(booking, {
                "status": new_status.value,
                "updated_at": self._clock(),
            })
        except SchedulingError as exc:
            self._fail("confirm", exc)
            return False
        finally:
            self.loading = False

        self._merge(updated)
        service_name = await self._service_name(updated.service_id)
        await self._notifications.send_booking_confirmed(updated, service_name)
        logger.info("Booking %s confirmed", booking_id)
        self._show(msg.TITLE_BOOKING_CONFIRMED, msg.BOOKING_CONFIRMED_BY_TRAINER, MessageLevel.SUCCESS)
        return True

    async def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> bool:
        """Cancel a booking. Its trainer and its client may both do this.

        Cancellation is terminal. Notifications that reference the booking
        are removed afterwards on a best-effort basis.
        """
        user = self._require_user()
        if user is None:
            return False

        self._begin()
        try:
            booking = await self._load(booking_id)
            if BookingStateMachine.is_terminal(booking.status):
                raise InvalidStateError(
                    f"Booking {booking_id} is already cancelled", user_message=msg.ALREADY_CANCELLED
                )
            if user.id not in (booking.client_id, booking.trainer_id):
                logger.warning(
                    "User %s is neither client nor trainer of booking %s", user.id, booking_id
                )
                raise AuthorizationError(f"{user.id} may not cancel {booking_id}")
            new_status = BookingStateMachine.next_status(booking.status, BookingAction.CANCEL)
            now = self._clock()
            updated = await self._write_status(booking, {
                "status": new_status.value,
                "cancellation_reason": reason or None,
                "cancellation_date": now,
                "updated_at": now,
            })
        except SchedulingError as exc:
            self._fail("cancel", exc)
            return False
        finally:
            self.loading = False

        self._merge(updated)
        await self._notifications.delete_for_reference(booking_id)
        logger.info("Booking %s cancelled", booking_id)
        self._show(msg.TITLE_BOOKING_CANCELLED, msg.BOOKING_CANCELLED, MessageLevel.SUCCESS)
        return True

    # ------------------------------------------------------------------ #
    # Queries and external updates
    # ------------------------------------------------------------------ #

    async def list_bookings(self) -> list[Booking]:
        """Bookings of the session user as client or trainer, newest first.

        Replaces the local cache with the result.
        """
        user = self._require_user()
        if user is None:
            return []

        self._begin()
        try:
            as_client = await self._store.select(APPOINTMENTS, eq("client_id", user.id))
            as_trainer = await self._store.select(APPOINTMENTS, eq("trainer_id", user.id))
        except StoreError as exc:
            self._fail("list", PersistenceError(str(exc)))
            return []
        finally:
            self.loading = False

        self.replace_all(as_client + as_trainer)
        self.needs_refresh = False
        return list(self.bookings)

    def merge_external(self, record: Union[Booking, dict[str, Any]]) -> Booking:
        """Insert or replace one booking in the cache, e.g. from a push update."""
        booking = record if isinstance(record, Booking) else Booking.model_validate(record)
        self._merge(booking)
        return booking

    def replace_all(self, records: Iterable[Union[Booking, dict[str, Any]]]) -> None:
        """Replace the cache with ``records``, dropping duplicate ids."""
        unique: dict[str, Booking] = {}
        for record in records:
            booking = record if isinstance(record, Booking) else Booking.model_validate(record)
            unique.setdefault(booking.id, booking)
        self.bookings = sorted(
            unique.values(),
            key=lambda b: b.created_at or datetime.min,
            reverse=True,
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _require_user(self) -> Optional[SessionUser]:
        if self._user is None:
            self.last_error = AuthenticationRequiredError()
            self._show(msg.TITLE_LOGIN_REQUIRED, msg.LOGIN_REQUIRED, MessageLevel.ERROR)
            return None
        set_session_id(self._user.id)
        return self._user

    def _begin(self) -> None:
        self.loading = True
        self.last_error = None

    async def _load(self, booking_id: str) -> Booking:
        try:
            row = await self._store.get(APPOINTMENTS, booking_id)
        except RecordNotFound as exc:
            raise NotFoundError(f"Booking {booking_id} not found") from exc
        except StoreError as exc:
            raise PersistenceError(f"Loading booking {booking_id} failed: {exc}") from exc
        return Booking.model_validate(row)

    async def _write_status(self, booking: Booking, changes: dict[str, Any]) -> Booking:
        """Update a booking only if its status is still the one we read."""
        try:
            row = await self._store.update(
                APPOINTMENTS, booking.id, changes, expect={"status": booking.status.value}
            )
        except StaleRecord as exc:
            raise InvalidStateError(str(exc)) from exc
        except RecordNotFound as exc:
            raise NotFoundError(str(exc)) from exc
        except StoreError as exc:
            raise PersistenceError(f"Updating booking {booking.id} failed: {exc}") from exc
        return Booking.model_validate(row)

    async def _ensure_within_availability(
        self, trainer_id: str, start: datetime, end: datetime
    ) -> None:
        windows = await self._availability.availability_for(trainer_id)
        day = start.date()
        for window in windows:
            if window.day_of_week != weekday_index(day):
                continue
            if anchor(day, window.start_time) <= start and end <= anchor(day, window.end_time):
                return
        raise ValidationError(
            f"{start}-{end} is outside the availability of {trainer_id}",
            user_message=msg.OUTSIDE_AVAILABILITY,
        )

    async def _service_name(self, service_id: Optional[str]) -> str:
        if not service_id:
            return ""
        try:
            return (await self._services.get(service_id)).name
        except SchedulingError as exc:
            logger.warning("Could not load service %s for notification: %s", service_id, exc)
            return ""

    def _merge(self, booking: Booking) -> None:
        for i, existing in enumerate(self.bookings):
            if existing.id == booking.id:
                self.bookings[i] = booking
                return
        self.bookings.insert(0, booking)

    def _fail(self, operation: str, exc: SchedulingError, fallback: Optional[str] = None) -> None:
        logger.error("Booking %s failed: %s", operation, exc)
        self.last_error = exc
        if isinstance(exc, (PersistenceError, ConflictError, InvalidStateError)):
            self.needs_refresh = True
        description = fallback if fallback and isinstance(exc, PersistenceError) else exc.user_message
        self._show(msg.TITLE_ERROR, description, MessageLevel.ERROR)

    def _show(self, title: str, description: str, level: MessageLevel) -> None:
        self._sink.show(UserMessage(title=title, description=description, level=level))
