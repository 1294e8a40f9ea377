"""
Calendar view model: loads a user's items, expands recurring ones and
routes edits and deletes to the right record.

Scope of a write depends on what the target id names:

  derived occurrence, single   -> persisted override for that index
  base occurrence, single      -> the base record itself (ends or changes
                                  the whole series, since occurrence 0 is
                                  the series' source of truth)
  any occurrence, whole series -> the base record; overrides are dropped
                                  when the series is deleted

``occurrences`` only changes after the store has accepted the write.
"""

from datetime import datetime
from typing import Any, Optional, Union

from coachcal.calendar.recurrence import expand, expand_all, is_series_member, split_occurrence_id
from coachcal.calendar.repository import CalendarRepository
from coachcal.config import settings
from coachcal.errors import (
    AuthenticationRequiredError,
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    SchedulingError,
    ValidationError,
)
from coachcal.feedback import MessageLevel, MessageLog, MessageSink, UserMessage
from coachcal.logging_context import get_session_logger, set_session_id
from coachcal.messages import user_messages as msg
from coachcal.schemas.calendar_schema import (
    CalendarItem,
    CalendarItemKind,
    DerivedOccurrence,
    EventType,
    Occurrence,
)
from coachcal.schemas.session_schema import SessionUser
from coachcal.store.base import RecordStore
from coachcal.utils import to_local

logger = get_session_logger(__name__)

# Fields a single occurrence may override.
OCCURRENCE_FIELDS = frozenset({"title", "description", "location", "start_time", "end_time"})
# Fields a base record edit may change.
ITEM_FIELDS = OCCURRENCE_FIELDS | {"is_recurring", "event_type"}


class CalendarService:
    """Expanded calendar of one user, with single and whole-series edits."""

    def __init__(
        self,
        store: Union[RecordStore, CalendarRepository],
        user: Optional[SessionUser],
        sink: Optional[MessageSink] = None,
        horizon: Optional[int] = None,
    ) -> None:
        if isinstance(store, CalendarRepository):
            self._repository = store
        else:
            self._repository = CalendarRepository(store)
        self._user = user
        self._sink = sink if sink is not None else MessageLog()
        self._horizon = horizon

        self.occurrences: list[Occurrence] = []
        self.loading = False
        self.last_error: Optional[SchedulingError] = None

    def find(self, occurrence_id: str) -> Optional[Occurrence]:
        for occurrence in self.occurrences:
            if occurrence.id == occurrence_id:
                return occurrence
        return None

    async def load(self) -> list[Occurrence]:
        """Load and expand every calendar item of the session user."""
        user = self._require_user()
        if user is None:
            return []

        self._begin()
        try:
            items = await self._repository.load_items(user.id)
            recurring = [item.id for item in items if item.is_recurring]
            overrides = await self._repository.overrides_for(recurring)
        except SchedulingError as exc:
            self._fail("load", exc, msg.CALENDAR_LOAD_FAILED)
            return []
        finally:
            self.loading = False

        self.occurrences = expand_all(items, overrides, self._horizon)
        logger.info("Loaded %d items (%d occurrences)", len(items), len(self.occurrences))
        return list(self.occurrences)

    async def add_event(
        self,
        title: str,
        start_time: Union[datetime, str],
        end_time: Union[datetime, str],
        description: str = "",
        location: str = "",
        is_recurring: bool = False,
        event_type: EventType = EventType.PERSONAL,
        client_id: Optional[str] = None,
    ) -> Optional[CalendarItem]:
        user = self._require_user()
        if user is None:
            return None

        self._begin()
        try:
            if not title or not title.strip():
                raise ValidationError("title is required")
            start, end = self._coerce_window(start_time, end_time)
            event_type = self._coerce_changes({"event_type": event_type})["event_type"]
            item = await self._repository.add_event({
                "user_id": user.id,
                "client_id": client_id,
                "title": title.strip(),
                "description": description,
                "location": location,
                "start_time": start,
                "end_time": end,
                "is_recurring": is_recurring,
                "event_type": event_type.value,
            })
        except SchedulingError as exc:
            self._fail("add", exc, msg.EVENT_WRITE_FAILED)
            return None
        finally:
            self.loading = False

        self.occurrences.extend(expand(item, self._horizon))
        self.occurrences.sort(key=lambda o: o.start_time)
        logger.info("Event %s added (recurring=%s)", item.id, is_recurring)
        self._show(msg.TITLE_EVENT_ADDED, msg.EVENT_ADDED, MessageLevel.SUCCESS)
        return item

    async def edit(
        self, target_id: str, changes: dict[str, Any], apply_to_whole_series: bool = False
    ) -> bool:
        """Apply ``changes`` to one occurrence or to the series ``target_id`` belongs to."""
        user = self._require_user()
        if user is None:
            return False

        self._begin()
        try:
            item, index = await self._target(target_id, user)
            single_derived = index is not None and not apply_to_whole_series
            allowed = OCCURRENCE_FIELDS if single_derived else ITEM_FIELDS
            if item.kind is CalendarItemKind.APPOINTMENT:
                # An appointment's type follows from the viewer's role.
                allowed = allowed - {"event_type"}
            unknown = set(changes) - allowed
            if unknown:
                raise ValidationError(f"Cannot change {sorted(unknown)} here")
            values = self._coerce_changes(changes)

            if single_derived:
                current = await self._stored_occurrence(item, index)
                self._check_window(
                    values.get("start_time", current.start_time),
                    values.get("end_time", current.end_time),
                )
                await self._repository.save_override(item.id, index, **values)
            else:
                self._check_window(
                    values.get("start_time", item.start_time),
                    values.get("end_time", item.end_time),
                )
                item = await self._repository.update_item(item, values)
            overrides = await self._repository.overrides_for([item.id]) if item.is_recurring else []
        except SchedulingError as exc:
            self._fail("edit", exc, msg.EVENT_WRITE_FAILED)
            return False
        finally:
            self.loading = False

        self._replace_series(item.id, expand(item, self._horizon, overrides))
        if single_derived:
            logger.info("Occurrence %s edited", target_id)
            self._show(msg.TITLE_EVENT_UPDATED, msg.EVENT_UPDATED, MessageLevel.SUCCESS)
        else:
            logger.info("Series %s edited (whole=%s)", item.id, apply_to_whole_series)
            description = msg.EVENT_UPDATED_SERIES if item.is_recurring else msg.EVENT_UPDATED
            self._show(msg.TITLE_EVENT_UPDATED, description, MessageLevel.SUCCESS)
        return True

    async def delete(self, target_id: str, apply_to_whole_series: bool = False) -> bool:
        """Delete one occurrence or the whole series ``target_id`` belongs to."""
        user = self._require_user()
        if user is None:
            return False

        self._begin()
        try:
            item, index = await self._target(target_id, user)
            single_derived = index is not None and not apply_to_whole_series
            if single_derived:
                await self._repository.save_override(item.id, index, deleted=True)
            else:
                await self._repository.delete_item(item)
        except SchedulingError as exc:
            self._fail("delete", exc, msg.EVENT_DELETE_FAILED)
            return False
        finally:
            self.loading = False

        if single_derived:
            self.occurrences = [o for o in self.occurrences if o.id != target_id]
            logger.info("Occurrence %s deleted", target_id)
            self._show(msg.TITLE_EVENT_DELETED, msg.EVENT_DELETED, MessageLevel.SUCCESS)
            return True

        if item.is_recurring:
            await self._repository.delete_overrides(item.id)
        self._replace_series(item.id, [])
        logger.info("Series %s deleted (whole=%s)", item.id, apply_to_whole_series)
        description = msg.EVENT_DELETED_SERIES if item.is_recurring else msg.EVENT_DELETED
        self._show(msg.TITLE_EVENT_DELETED, description, MessageLevel.SUCCESS)
        return True

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _target(self, target_id: str, user: SessionUser) -> tuple[CalendarItem, Optional[int]]:
        try:
            base_id, index = split_occurrence_id(target_id)
        except ValueError as exc:
            raise NotFoundError(str(exc)) from exc
        item = await self._repository.resolve(base_id)
        if user.id not in (item.owner_id, item.client_id):
            logger.warning("User %s tried to change calendar item %s", user.id, base_id)
            raise AuthorizationError(
                f"{user.id} does not take part in {base_id}", user_message=msg.NOT_EVENT_PARTICIPANT
            )
        if index is not None and (not item.is_recurring or self._beyond_horizon(index)):
            raise NotFoundError(f"{item.id} has no occurrence {index}")
        return item, index

    async def _stored_occurrence(self, item: CalendarItem, index: int) -> DerivedOccurrence:
        """Occurrence ``index`` of ``item`` as persisted, whether or not it was loaded."""
        overrides = await self._repository.overrides_for([item.id])
        override = next((o for o in overrides if o.occurrence_index == index), None)
        return DerivedOccurrence(item, index, override=override)

    def _beyond_horizon(self, index: int) -> bool:
        horizon = self._horizon if self._horizon is not None else settings.scheduling.recurrence_horizon
        return index > horizon

    def _replace_series(self, base_id: str, replacement: list[Occurrence]) -> None:
        """Swap every in-memory occurrence of ``base_id`` for ``replacement``."""
        kept = [o for o in self.occurrences if not is_series_member(o.id, base_id)]
        self.occurrences = sorted(kept + replacement, key=lambda o: o.start_time)

    @staticmethod
    def _coerce_changes(changes: dict[str, Any]) -> dict[str, Any]:
        values = dict(changes)
        for key in ("start_time", "end_time"):
            if key in values:
                try:
                    values[key] = to_local(values[key])
                except (TypeError, ValueError) as exc:
                    raise ValidationError(f"Invalid {key} {values[key]!r}") from exc
        if "event_type" in values:
            try:
                values["event_type"] = EventType(values["event_type"])
            except ValueError as exc:
                raise ValidationError(f"Unknown event type {values['event_type']!r}") from exc
        return values

    @classmethod
    def _coerce_window(
        cls, start_time: Union[datetime, str], end_time: Union[datetime, str]
    ) -> tuple[datetime, datetime]:
        values = cls._coerce_changes({"start_time": start_time, "end_time": end_time})
        cls._check_window(values["start_time"], values["end_time"])
        return values["start_time"], values["end_time"]

    @staticmethod
    def _check_window(start: Optional[datetime], end: Optional[datetime]) -> None:
        if start is not None and end is not None and not start < end:
            raise ValidationError(f"{start} is not before {end}", user_message=msg.INVALID_WINDOW)

    def _require_user(self) -> Optional[SessionUser]:
        if self._user is None:
            self.last_error = AuthenticationRequiredError()
            self._show(msg.TITLE_LOGIN_REQUIRED, msg.LOGIN_REQUIRED, MessageLevel.ERROR)
            return None
        set_session_id(self._user.id)
        return self._user

    def _begin(self) -> None:
        self.loading = True
        self.last_error = None

    def _fail(self, operation: str, exc: SchedulingError, fallback: str) -> None:
        logger.error("Calendar %s failed: %s", operation, exc)
        self.last_error = exc
        description = fallback if isinstance(exc, PersistenceError) else exc.user_message
        self._show(msg.TITLE_ERROR, description, MessageLevel.ERROR)

    def _show(self, title: str, description: str, level: MessageLevel) -> None:
        self._sink.show(UserMessage(title=title, description=description, level=level))
