"""Shared utilities used across the scheduling engine."""

from datetime import date, datetime
from typing import Callable, Union

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current local wall-clock time, without tzinfo."""
    return datetime.now()


def weekday_index(day: date) -> int:
    """Return the weekday with Sunday as 0, the convention availability rows use.

    Examples:
        >>> weekday_index(date(2026, 10, 19))  # a Monday
        1
        >>> weekday_index(date(2026, 10, 18))  # a Sunday
        0
    """
    return (day.weekday() + 1) % 7


def to_local(value: Union[datetime, str]) -> datetime:
    """Coerce an ISO string or datetime to a naive local wall-clock datetime.

    Aware values are converted to the process's local zone before the
    tzinfo is dropped; naive values are taken as already local.

    Examples:
        >>> to_local("2026-10-19T09:00:00")
        datetime.datetime(2026, 10, 19, 9, 0)
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value
