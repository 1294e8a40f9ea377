"""Tests for import chains and module integrity.

Ensures all public modules can be imported without errors and
that re-exports from __init__.py files work correctly.
"""


class TestSchemaImports:
    def test_import_booking_schema(self):
        from coachcal.schemas.booking_schema import Booking, BookingStatus, Service, TimeSlot
        assert BookingStatus.PENDING == "pending"
        assert Booking is not None

    def test_import_availability_schema(self):
        from coachcal.schemas.availability_schema import AvailabilityWindow, ConfirmationMode
        assert ConfirmationMode.AUTO == "auto"

    def test_import_calendar_schema(self):
        from coachcal.schemas.calendar_schema import CalendarItemKind, occurrence_id
        assert CalendarItemKind.EVENT.collection == "events"
        assert CalendarItemKind.APPOINTMENT.collection == "appointments"
        assert occurrence_id("x", 2) == "x-recurring-2"


class TestPackageImports:
    def test_version(self):
        import coachcal
        assert coachcal.__version__

    def test_store_package(self):
        from coachcal.store import InMemoryStore, RecordStore, StoreError
        assert callable(InMemoryStore)

    def test_scheduling_package(self):
        from coachcal.scheduling import (
            AvailabilityRepository, ConflictChecker, ServiceCatalog, SlotGenerator, overlaps,
        )
        assert callable(overlaps)

    def test_booking_package(self):
        from coachcal.booking import (
            BookingAction, BookingLifecycleManager, BookingStateMachine, NotificationService,
        )
        assert len(BookingStateMachine.TRANSITIONS) == 3

    def test_calendar_package(self):
        from coachcal.calendar import CalendarRepository, CalendarService, expand, split_occurrence_id
        assert split_occurrence_id("a-recurring-3") == ("a", 3)

    def test_errors_carry_user_messages(self):
        from coachcal.errors import ConflictError, PersistenceError, SchedulingError
        from coachcal.messages import user_messages as msg
        assert issubclass(ConflictError, SchedulingError)
        assert ConflictError().user_message == msg.SLOT_TAKEN
        assert PersistenceError("db down").user_message == msg.GENERIC_FAILURE
