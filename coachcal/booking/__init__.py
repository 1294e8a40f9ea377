from coachcal.booking.lifecycle import BookingLifecycleManager
from coachcal.booking.notifications import NotificationService
from coachcal.booking.state_machine import BookingAction, BookingStateMachine

__all__ = [
    "BookingLifecycleManager",
    "BookingStateMachine",
    "BookingAction",
    "NotificationService",
]
