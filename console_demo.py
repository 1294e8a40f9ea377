"""
Offline console demo: walks through booking and calendar flows in memory.

Uses the real slot generator, booking lifecycle and calendar service on
top of the in-memory store. No backend, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario calendar
"""

import argparse
import asyncio
from datetime import date, datetime, timedelta

from coachcal.booking import BookingLifecycleManager
from coachcal.calendar import CalendarService
from coachcal.feedback import MessageLevel, UserMessage
from coachcal.messages.message_templates import format_when
from coachcal.scheduling import AvailabilityRepository, SlotGenerator
from coachcal.schemas.session_schema import SessionUser
from coachcal.store import InMemoryStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

_LEVEL_COLOURS = {
    MessageLevel.INFO: BLUE,
    MessageLevel.SUCCESS: GREEN,
    MessageLevel.WARNING: YELLOW,
    MessageLevel.ERROR: RED,
}

TRAINER = SessionUser(id="trainer-demo", display_name="Tina Trainer", is_trainer=True)
CLIENT = SessionUser(id="client-demo", display_name="Cleo Client", email="cleo@example.com")


class ConsoleSink:
    """Prints user messages the way a UI would show its toasts."""

    def show(self, message: UserMessage) -> None:
        colour = _LEVEL_COLOURS[message.level]
        print(f"{colour}{BOLD}[{message.title}]{RESET} {colour}{message.description}{RESET}")


def step(text: str) -> None:
    print(f"\n{BOLD}{text}{RESET}")


def log(text: str) -> None:
    print(f"{DIM}  >> {text}{RESET}")


def next_weekday(start: date, weekday: int) -> date:
    """First date on or after ``start`` with Python weekday ``weekday``."""
    return start + timedelta(days=(weekday - start.weekday()) % 7)


async def seed(store: InMemoryStore, sink: ConsoleSink) -> None:
    store.seed("services", [{
        "id": "svc-strength", "trainer_id": TRAINER.id,
        "name": "Strength session", "duration": 45, "price": 40.0,
    }])
    availability = AvailabilityRepository(store, sink)
    await availability.replace_availability(TRAINER.id, [
        {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
        {"day_of_week": 3, "start_time": "16:00", "end_time": "19:00"},
    ])
    await availability.save_settings(TRAINER.id, time_step=30, confirmation_mode="auto")


async def booking_scenario(store: InMemoryStore, sink: ConsoleSink) -> None:
    step("Client looks for a free time with the trainer")
    generator = SlotGenerator(store, sink)
    dates = await generator.available_dates(TRAINER.id, date.today(), horizon_days=14)
    log(f"Bookable dates: {[d.isoformat() for d in dates]}")
    if not dates:
        return
    slots = await generator.available_slots(TRAINER.id, "svc-strength", dates[0])
    for slot in slots:
        log(f"{slot.start_time:%H:%M} - {slot.end_time:%H:%M}")
    if not slots:
        return

    step("Client books the first slot")
    manager = BookingLifecycleManager(store, CLIENT, sink)
    booking = await manager.create_booking(
        TRAINER.id, "svc-strength", slots[0].start_time, CLIENT.display_name, CLIENT.email or ""
    )
    if booking is None:
        return
    log(f"Booking {booking.id} is {booking.status.value} for {format_when(booking.start_time)}")

    step("Somebody else tries the same slot")
    await BookingLifecycleManager(store, SessionUser(id="client-late"), sink).create_booking(
        TRAINER.id, "svc-strength", slots[0].start_time, "Late Larry", "larry@example.com"
    )

    step("Client cancels, then tries to cancel again")
    await manager.cancel_booking(booking.id, reason="Schedule clash")
    await manager.cancel_booking(booking.id)


async def calendar_scenario(store: InMemoryStore, sink: ConsoleSink) -> None:
    step("Trainer adds a weekly team meeting")
    calendar = CalendarService(store, TRAINER, sink)
    monday = next_weekday(date.today(), 0)
    start = datetime.combine(monday, datetime.min.time()).replace(hour=13)
    item = await calendar.add_event("Team meeting", start, start + timedelta(hours=1), is_recurring=True)
    if item is None:
        return
    log(f"{len(calendar.occurrences)} occurrences shown")

    step("Trainer skips the third week and moves the fourth")
    await calendar.delete(f"{item.id}-recurring-2")
    moved = start + timedelta(weeks=3, hours=2)
    await calendar.edit(f"{item.id}-recurring-3", {"start_time": moved, "end_time": moved + timedelta(hours=1)})

    step("Reloading keeps both exceptions")
    reloaded = CalendarService(store, TRAINER, sink)
    for occurrence in (await reloaded.load())[:5]:
        log(f"{occurrence.id:<40} {format_when(occurrence.start_time)}  {occurrence.title}")

    step("Trainer ends the whole series")
    await reloaded.delete(f"{item.id}-recurring-5", apply_to_whole_series=True)
    log(f"{len(reloaded.occurrences)} occurrences left")


SCENARIOS = {
    "booking": booking_scenario,
    "calendar": calendar_scenario,
}


async def run(names: list[str]) -> None:
    store = InMemoryStore()
    sink = ConsoleSink()
    await seed(store, sink)
    for name in names:
        print(f"\n{BLUE}{BOLD}=== {name} ==={RESET}")
        await SCENARIOS[name](store, sink)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        default=None,
        help="Play a single scenario instead of all of them",
    )
    args = parser.parse_args()
    asyncio.run(run([args.scenario] if args.scenario else list(SCENARIOS)))


if __name__ == "__main__":
    main()
