"""
Trainer availability windows and scheduling settings.

Reads are used by the slot generator and the booking lifecycle, which
own error reporting. The two editor operations (replacing the weekly
windows and saving settings) are user actions themselves and report
their own outcome to the message sink.
"""

import logging
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from coachcal.config import settings
from coachcal.errors import PersistenceError, SchedulingError, ValidationError
from coachcal.feedback import MessageLevel, MessageLog, MessageSink, UserMessage
from coachcal.messages import user_messages as msg
from coachcal.schemas.availability_schema import (
    AvailabilityWindow,
    ConfirmationMode,
    TrainerSettings,
)
from coachcal.store.base import RecordStore, StoreError, eq

logger = logging.getLogger(__name__)

AVAILABILITY = "trainer_availability"
SETTINGS = "trainer_settings"

_SETTINGS_FIELDS = ("min_duration", "max_duration", "time_step", "confirmation_mode")


def default_settings(trainer_id: str) -> TrainerSettings:
    """In-memory defaults for a trainer who never saved settings."""
    sched = settings.scheduling
    return TrainerSettings(
        trainer_id=trainer_id,
        min_duration=sched.default_min_duration,
        max_duration=sched.default_max_duration,
        time_step=sched.default_time_step,
        confirmation_mode=ConfirmationMode(sched.default_confirmation_mode),
    )


class AvailabilityRepository:
    """Access to ``trainer_availability`` and ``trainer_settings``."""

    def __init__(self, store: RecordStore, sink: Optional[MessageSink] = None) -> None:
        self._store = store
        self._sink = sink if sink is not None else MessageLog()

    async def availability_for(self, trainer_id: str) -> list[AvailabilityWindow]:
        """Available windows of a trainer, ordered by weekday then start time."""
        try:
            rows = await self._store.select(
                AVAILABILITY,
                eq("trainer_id", trainer_id),
                eq("is_available", True),
                order_by=("day_of_week", "start_time"),
            )
        except StoreError as exc:
            raise PersistenceError(f"Loading availability of {trainer_id} failed: {exc}") from exc
        return [AvailabilityWindow.model_validate(row) for row in rows]

    async def settings_for(self, trainer_id: str) -> TrainerSettings:
        """Saved settings of a trainer, or the defaults when none exist."""
        try:
            rows = await self._store.select(SETTINGS, eq("trainer_id", trainer_id))
        except StoreError as exc:
            raise PersistenceError(f"Loading settings of {trainer_id} failed: {exc}") from exc
        if not rows:
            logger.debug("No saved settings for trainer %s, using defaults", trainer_id)
            return default_settings(trainer_id)
        row = rows[0]
        return TrainerSettings.model_validate(
            {"trainer_id": trainer_id, **{k: row[k] for k in _SETTINGS_FIELDS if k in row}}
        )

    # ------------------------------------------------------------------ #
    # Editors
    # ------------------------------------------------------------------ #

    async def replace_availability(
        self,
        trainer_id: str,
        windows: Iterable[Union[AvailabilityWindow, dict[str, Any]]],
    ) -> Optional[list[AvailabilityWindow]]:
        """Replace every window of the trainer with ``windows``.

        All windows are validated before anything is deleted, so an invalid
        entry leaves the stored availability untouched.
        """
        try:
            validated = [self._as_window(trainer_id, w) for w in windows]
            await self._store.delete_where(AVAILABILITY, eq("trainer_id", trainer_id))
            saved = []
            for window in validated:
                row = await self._store.insert(
                    AVAILABILITY, window.model_dump(exclude={"id"}, mode="json")
                )
                saved.append(AvailabilityWindow.model_validate(row))
        except SchedulingError as exc:
            self._report_failure(exc)
            return None
        except StoreError as exc:
            logger.error("Saving availability of %s failed: %s", trainer_id, exc)
            self._report_failure(PersistenceError(str(exc)))
            return None

        logger.info("Saved %d availability windows for trainer %s", len(saved), trainer_id)
        self._sink.show(UserMessage(
            title=msg.TITLE_AVAILABILITY_SAVED,
            description=msg.AVAILABILITY_SAVED,
            level=MessageLevel.SUCCESS,
        ))
        return saved

    async def save_settings(self, trainer_id: str, **changes: Any) -> Optional[TrainerSettings]:
        """Insert or update the trainer's settings with ``changes``."""
        unknown = set(changes) - set(_SETTINGS_FIELDS)
        if unknown:
            raise TypeError(f"Unknown trainer setting(s): {sorted(unknown)}")

        try:
            current = await self.settings_for(trainer_id)
            merged = {**current.model_dump(mode="json"), **changes}
            try:
                updated = TrainerSettings.model_validate(merged)
            except PydanticValidationError as exc:
                raise ValidationError(str(exc), user_message=msg.INVALID_SETTINGS) from exc

            values = updated.model_dump(exclude={"trainer_id"}, mode="json")
            rows = await self._store.select(SETTINGS, eq("trainer_id", trainer_id))
            if rows:
                await self._store.update(SETTINGS, rows[0]["id"], values)
            else:
                await self._store.insert(SETTINGS, {"trainer_id": trainer_id, **values})
        except SchedulingError as exc:
            self._report_failure(exc)
            return None
        except StoreError as exc:
            logger.error("Saving settings of %s failed: %s", trainer_id, exc)
            self._report_failure(PersistenceError(str(exc)))
            return None

        logger.info("Saved settings for trainer %s: %s", trainer_id, sorted(changes))
        self._sink.show(UserMessage(
            title=msg.TITLE_SETTINGS_SAVED,
            description=msg.SETTINGS_SAVED,
            level=MessageLevel.SUCCESS,
        ))
        return updated

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _as_window(
        trainer_id: str, window: Union[AvailabilityWindow, dict[str, Any]]
    ) -> AvailabilityWindow:
        data = window.model_dump() if isinstance(window, AvailabilityWindow) else dict(window)
        data["trainer_id"] = trainer_id
        try:
            return AvailabilityWindow.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(str(exc), user_message=msg.INVALID_WINDOW) from exc

    def _report_failure(self, exc: SchedulingError) -> None:
        self._sink.show(UserMessage(
            title=msg.TITLE_ERROR, description=exc.user_message, level=MessageLevel.ERROR
        ))
