"""Short user-facing texts shown by the engine's operation boundaries."""

# --- Titles ---
TITLE_ERROR = "Something went wrong"
TITLE_LOGIN_REQUIRED = "Sign-in required"
TITLE_NO_AVAILABILITY = "No available times"
TITLE_BOOKING_CONFIRMED = "Booking confirmed"
TITLE_BOOKING_PENDING = "Booking pending"
TITLE_BOOKING_CANCELLED = "Booking cancelled"
TITLE_SETTINGS_SAVED = "Settings saved"
TITLE_AVAILABILITY_SAVED = "Availability saved"
TITLE_EVENT_ADDED = "Event added"
TITLE_EVENT_UPDATED = "Event updated"
TITLE_EVENT_DELETED = "Event deleted"

# --- Failure descriptions ---
GENERIC_FAILURE = "The operation could not be completed. Please try again."
LOGIN_REQUIRED = "You need to sign in to do this."
NOT_FOUND = "The requested item could not be found."
NOT_AUTHORIZED = "You are not allowed to change this booking."
NOT_EVENT_PARTICIPANT = "You are not allowed to change this event."
INVALID_STATE = "This booking cannot be changed in its current state."
ALREADY_CANCELLED = "This booking has already been cancelled."
SLOT_TAKEN = "The selected time overlaps another booking."
OUTSIDE_AVAILABILITY = "The selected time is outside of the trainer's availability."
INVALID_INPUT = "Some of the provided details are invalid."
INVALID_WINDOW = "The start time must be earlier than the end time."
INVALID_SETTINGS = "The minimum duration cannot exceed the maximum duration."
MISSING_TRAINER = "Missing trainer id."
MISSING_TRAINER_OR_SERVICE = "Missing trainer or service id."
SLOTS_FAILED = "Could not load the available times."
DATES_FAILED = "Could not load the available dates."
BOOKING_FAILED = "Could not create the booking."
CALENDAR_LOAD_FAILED = "Could not load the calendar."
EVENT_WRITE_FAILED = "Could not save the event."
EVENT_DELETE_FAILED = "Could not delete the event."

# --- Informational ---
NO_AVAILABILITY = "The trainer has not set any available times."
NO_AVAILABILITY_ON_DAY = "The trainer is not available on this day."
BOOKING_PENDING = "The booking was created and is waiting for the trainer's confirmation."
BOOKING_CONFIRMED = "Your booking is confirmed for {when}."
BOOKING_CONFIRMED_BY_TRAINER = "The booking has been confirmed."
BOOKING_CANCELLED = "The booking has been cancelled."
SETTINGS_SAVED = "Your booking settings have been updated."
AVAILABILITY_SAVED = "Your available times have been saved."
EVENT_ADDED = "The event was added to the calendar."
EVENT_UPDATED = "The event was updated."
EVENT_UPDATED_SERIES = "The event was updated together with all of its repeats."
EVENT_DELETED = "The event was removed from the calendar."
EVENT_DELETED_SERIES = "The event was removed together with all of its repeats."
