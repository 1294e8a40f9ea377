from coachcal.calendar.recurrence import expand, occurrence_id, split_occurrence_id
from coachcal.calendar.repository import CalendarRepository
from coachcal.calendar.service import CalendarService

__all__ = [
    "CalendarService",
    "CalendarRepository",
    "expand",
    "occurrence_id",
    "split_occurrence_id",
]
