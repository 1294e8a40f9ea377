from coachcal.scheduling.availability import AvailabilityRepository
from coachcal.scheduling.conflicts import ConflictChecker, conflicting, has_conflict
from coachcal.scheduling.intervals import overlaps, step_time
from coachcal.scheduling.services import ServiceCatalog
from coachcal.scheduling.slots import SlotGenerator

__all__ = [
    "overlaps",
    "step_time",
    "AvailabilityRepository",
    "ServiceCatalog",
    "SlotGenerator",
    "ConflictChecker",
    "conflicting",
    "has_conflict",
]
