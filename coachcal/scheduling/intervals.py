"""
Interval arithmetic on local wall-clock datetimes.

All ranges are closed-open: ``[start, end)``. A range that ends exactly
when another begins does not overlap it.
"""

from datetime import date, datetime, time, timedelta


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Return True when ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect.

    Written as three explicit cases: A starts inside B, A ends inside B,
    or A fully contains B. Touching boundaries are not an overlap.
    """
    return (
        (a_start >= b_start and a_start < b_end)
        or (a_end > b_start and a_end <= b_end)
        or (a_start <= b_start and a_end >= b_end)
    )


def step_time(t: datetime, minutes: int) -> datetime:
    """Advance ``t`` by a whole number of minutes. No rounding or zone handling."""
    return t + timedelta(minutes=minutes)


def anchor(day: date, time_of_day: time) -> datetime:
    """Place a time-of-day on a calendar date."""
    return datetime.combine(day, time_of_day)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """First and last representable instant of ``day``."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)
