"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Any, Optional

import pytest

from coachcal.feedback import MessageLog
from coachcal.schemas.session_schema import SessionUser
from coachcal.store.memory import InMemoryStore

TRAINER_ID = "trainer-1"
CLIENT_ID = "client-1"
OTHER_ID = "stranger-1"
SERVICE_ID = "service-30"

# 2026-10-19 is a Monday (weekday index 1).
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
NOW = datetime(2026, 10, 19, 8, 0)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """Local wall-clock datetime on ``day``."""
    return datetime(day.year, day.month, day.day, hour, minute)


def make_window(
    day_of_week: int = 1,
    start: str = "09:00:00",
    end: str = "10:00:00",
    trainer_id: str = TRAINER_ID,
) -> dict[str, Any]:
    """Availability row as the backend stores it, with times as strings."""
    return {
        "trainer_id": trainer_id,
        "day_of_week": day_of_week,
        "start_time": start,
        "end_time": end,
        "is_available": True,
    }


def make_settings(
    trainer_id: str = TRAINER_ID,
    time_step: int = 15,
    confirmation_mode: str = "manual",
    min_duration: int = 30,
    max_duration: int = 120,
) -> dict[str, Any]:
    return {
        "trainer_id": trainer_id,
        "min_duration": min_duration,
        "max_duration": max_duration,
        "time_step": time_step,
        "confirmation_mode": confirmation_mode,
    }


def make_service(
    service_id: str = SERVICE_ID,
    duration: int = 30,
    name: str = "Strength session",
    trainer_id: str = TRAINER_ID,
) -> dict[str, Any]:
    return {
        "id": service_id,
        "trainer_id": trainer_id,
        "name": name,
        "duration": duration,
        "price": 40.0,
    }


def make_booking(
    start: datetime,
    end: datetime,
    status: str = "confirmed",
    booking_id: Optional[str] = None,
    trainer_id: str = TRAINER_ID,
    client_id: str = CLIENT_ID,
    created_at: Optional[datetime] = None,
) -> dict[str, Any]:
    row = {
        "trainer_id": trainer_id,
        "client_id": client_id,
        "service_id": SERVICE_ID,
        "title": "Cleo Client - Strength session",
        "start_time": start,
        "end_time": end,
        "status": status,
        "is_recurring": False,
        "created_at": created_at or NOW,
        "updated_at": created_at or NOW,
    }
    if booking_id:
        row["id"] = booking_id
    return row


def make_event(
    start: datetime,
    end: datetime,
    event_id: str = "event-1",
    user_id: str = TRAINER_ID,
    is_recurring: bool = False,
    title: str = "Team meeting",
    client_id: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "id": event_id,
        "user_id": user_id,
        "client_id": client_id,
        "title": title,
        "description": "",
        "location": "Gym",
        "start_time": start,
        "end_time": end,
        "is_recurring": is_recurring,
        "event_type": "personal",
    }


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def messages():
    return MessageLog()


@pytest.fixture
def trainer():
    return SessionUser(id=TRAINER_ID, display_name="Tina Trainer", is_trainer=True)


@pytest.fixture
def client():
    return SessionUser(id=CLIENT_ID, display_name="Cleo Client", email="cleo@example.com")


@pytest.fixture
def stranger():
    return SessionUser(id=OTHER_ID, display_name="Sam Stranger")


@pytest.fixture
def seeded_store(store):
    """A trainer with one Monday 09:00-10:00 window, step 15 and a 30 minute service."""
    store.seed("services", [make_service()])
    store.seed("trainer_availability", [make_window()])
    store.seed("trainer_settings", [make_settings()])
    return store
