"""
Weekly recurrence expansion.

A recurring calendar item is shown as occurrence 0 (the item itself)
followed by ``horizon`` weekly repeats. Repeats are computed, never
stored; only exceptions to them are persisted as overrides.

Usage:
    occurrences = expand(item)                 # 13 entries for a recurring item
    base_id, index = split_occurrence_id(occurrences[3].id)
    assert (base_id, index) == (item.id, 3)
"""

from typing import Iterable, Optional

from coachcal.config import settings
from coachcal.schemas.calendar_schema import (
    RECURRING_MARKER,
    BaseOccurrence,
    CalendarItem,
    DerivedOccurrence,
    Occurrence,
    OccurrenceOverride,
    occurrence_id,
)

__all__ = [
    "RECURRING_MARKER",
    "expand",
    "expand_all",
    "is_series_member",
    "occurrence_id",
    "split_occurrence_id",
]


def split_occurrence_id(target_id: str) -> tuple[str, Optional[int]]:
    """Recover ``(base_id, occurrence_index)`` from a display id.

    Plain ids are their own base and have no index.

    Raises:
        ValueError: If the part after the marker is not a positive integer.
    """
    base_id, marker, index = target_id.partition(RECURRING_MARKER)
    if not marker:
        return target_id, None
    if not index.isdigit() or int(index) < 1:
        raise ValueError(f"Malformed occurrence id {target_id!r}")
    return base_id, int(index)


def is_series_member(candidate_id: str, base_id: str) -> bool:
    """True for the base id itself and every ``{base_id}-recurring-N`` id."""
    return candidate_id == base_id or candidate_id.startswith(base_id + RECURRING_MARKER)


def expand(
    item: CalendarItem,
    horizon: Optional[int] = None,
    overrides: Iterable[OccurrenceOverride] = (),
    title_suffix: Optional[str] = None,
) -> list[Occurrence]:
    """Occurrences of ``item`` in chronological order.

    Non-recurring items yield just themselves. Recurring items yield the
    item plus ``horizon`` repeats shifted by whole weeks; an override
    marked ``deleted`` suppresses its occurrence, any other override
    replaces the fields it sets.
    """
    if not item.is_recurring:
        return [BaseOccurrence(item)]
    if horizon is None:
        horizon = settings.scheduling.recurrence_horizon
    if title_suffix is None:
        title_suffix = settings.scheduling.recurring_title_suffix

    by_index = {o.occurrence_index: o for o in overrides if o.base_id == item.id}
    occurrences: list[Occurrence] = [BaseOccurrence(item)]
    for index in range(1, horizon + 1):
        override = by_index.get(index)
        if override is not None and override.deleted:
            continue
        occurrences.append(DerivedOccurrence(item, index, title_suffix, override))
    return occurrences


def expand_all(
    items: Iterable[CalendarItem],
    overrides: Iterable[OccurrenceOverride] = (),
    horizon: Optional[int] = None,
) -> list[Occurrence]:
    """Expand several items, keeping each series contiguous in input order."""
    overrides = list(overrides)
    result: list[Occurrence] = []
    for item in items:
        result.extend(expand(item, horizon, overrides))
    return result
