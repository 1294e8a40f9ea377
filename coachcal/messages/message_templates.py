"""Templates for notification contents and dynamic user messages."""

from datetime import datetime

from coachcal.config import settings
from coachcal.messages import user_messages as msg


def format_when(value: datetime) -> str:
    """Render a local wall-clock time the way notifications display it."""
    return value.strftime(settings.display.datetime_format)


def booking_title(client_name: str, service_name: str) -> str:
    return f"{client_name} - {service_name}"


def new_booking_for_trainer(client_name: str, service_name: str, start: datetime) -> str:
    return f"New booking: {client_name} - {service_name} ({format_when(start)})"


def booking_confirmed_for_client(service_name: str, start: datetime) -> str:
    return f"Your booking is confirmed: {service_name} ({format_when(start)})"


def trainer_confirmed_booking(booking_title_text: str, start: datetime) -> str:
    return f"You confirmed the booking: {booking_title_text} ({format_when(start)})"


def booking_created_message(start: datetime) -> str:
    return msg.BOOKING_CONFIRMED.format(when=format_when(start))


def not_confirmable_message(status: str) -> str:
    return f"The booking cannot be confirmed because it is {status}."
