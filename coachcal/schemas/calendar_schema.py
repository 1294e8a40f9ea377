"""Calendar items, persisted occurrence overrides and expanded occurrences.

Appointments and personal events live in two collections with the same
conceptual shape. ``CalendarItem`` unifies them and remembers which
collection a record came from (``kind``), so writes go straight to the
right place.

A recurring item is displayed as occurrence 0 (the item itself) plus
derived weekly occurrences. Single-occurrence edits and deletes are kept
as ``OccurrenceOverride`` records keyed by ``(base_id, occurrence_index)``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel

RECURRING_MARKER = "-recurring-"


def occurrence_id(base_id: str, index: int) -> str:
    """Display id of a derived occurrence: ``{base_id}-recurring-{index}``."""
    return f"{base_id}{RECURRING_MARKER}{index}"


class CalendarItemKind(str, Enum):
    EVENT = "event"
    APPOINTMENT = "appointment"

    @property
    def collection(self) -> str:
        return "events" if self is CalendarItemKind.EVENT else "appointments"


class EventType(str, Enum):
    PERSONAL = "personal"
    TRAINING = "training"
    GROUP = "group"


class CalendarItem(BaseModel):
    """A persisted calendar record, from either the events or the appointments collection."""
    id: str
    kind: CalendarItemKind
    owner_id: Optional[str] = None
    client_id: Optional[str] = None
    title: str = ""
    description: str = ""
    location: str = ""
    start_time: datetime
    end_time: datetime
    is_recurring: bool = False
    event_type: EventType = EventType.PERSONAL

    @classmethod
    def from_event(cls, row: dict[str, Any]) -> "CalendarItem":
        return cls(
            id=row["id"],
            kind=CalendarItemKind.EVENT,
            owner_id=row.get("user_id"),
            client_id=row.get("client_id"),
            title=row.get("title") or "Event",
            description=row.get("description") or "",
            location=row.get("location") or "",
            start_time=row["start_time"],
            end_time=row["end_time"],
            is_recurring=bool(row.get("is_recurring")),
            event_type=row.get("event_type") or EventType.PERSONAL,
        )

    @classmethod
    def from_appointment(cls, row: dict[str, Any], viewer_id: Optional[str] = None) -> "CalendarItem":
        # A trainer sees their own appointments as training sessions.
        event_type = EventType.TRAINING if viewer_id and row.get("trainer_id") == viewer_id else EventType.PERSONAL
        return cls(
            id=row["id"],
            kind=CalendarItemKind.APPOINTMENT,
            owner_id=row.get("trainer_id"),
            client_id=row.get("client_id"),
            title=row.get("title") or "Appointment",
            description=row.get("description") or "",
            location=row.get("location") or "",
            start_time=row["start_time"],
            end_time=row["end_time"],
            is_recurring=bool(row.get("is_recurring")),
            event_type=event_type,
        )


class OccurrenceOverride(BaseModel):
    """Persisted exception for one derived occurrence of a recurring item."""
    id: Optional[str] = None
    base_id: str
    occurrence_index: int
    deleted: bool = False
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


@dataclass(frozen=True)
class BaseOccurrence:
    """Occurrence 0: the persisted item itself."""
    item: CalendarItem

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def base_id(self) -> str:
        return self.item.id

    @property
    def occurrence_index(self) -> int:
        return 0

    @property
    def is_derived(self) -> bool:
        return False

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def description(self) -> str:
        return self.item.description

    @property
    def location(self) -> str:
        return self.item.location

    @property
    def start_time(self) -> datetime:
        return self.item.start_time

    @property
    def end_time(self) -> datetime:
        return self.item.end_time


@dataclass(frozen=True)
class DerivedOccurrence:
    """Occurrence ``index`` (>= 1), shifted ``index`` weeks after its base item."""
    item: CalendarItem
    index: int
    title_suffix: str = ""
    override: Optional[OccurrenceOverride] = None

    @property
    def id(self) -> str:
        return occurrence_id(self.item.id, self.index)

    @property
    def base_id(self) -> str:
        return self.item.id

    @property
    def occurrence_index(self) -> int:
        return self.index

    @property
    def is_derived(self) -> bool:
        return True

    def _overridden(self, name: str) -> Any:
        if self.override is None:
            return None
        return getattr(self.override, name)

    @property
    def title(self) -> str:
        value = self._overridden("title")
        return f"{self.item.title}{self.title_suffix}" if value is None else value

    @property
    def description(self) -> str:
        value = self._overridden("description")
        return self.item.description if value is None else value

    @property
    def location(self) -> str:
        value = self._overridden("location")
        return self.item.location if value is None else value

    @property
    def start_time(self) -> datetime:
        value = self._overridden("start_time")
        return self.item.start_time + timedelta(weeks=self.index) if value is None else value

    @property
    def end_time(self) -> datetime:
        value = self._overridden("end_time")
        return self.item.end_time + timedelta(weeks=self.index) if value is None else value


Occurrence = Union[BaseOccurrence, DerivedOccurrence]
