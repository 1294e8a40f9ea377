"""
Persistence for calendar items and occurrence overrides.

Events and appointments stay in their own collections. Each loaded
record becomes a ``CalendarItem`` tagged with its kind, and every write
goes to the collection that kind names; there is no trial-and-error
across collections.
"""

import logging
from typing import Any, Iterable, Optional

from coachcal.errors import NotFoundError, PersistenceError
from coachcal.schemas.booking_schema import BookingStatus
from coachcal.schemas.calendar_schema import CalendarItem, CalendarItemKind, OccurrenceOverride
from coachcal.store.base import RecordNotFound, RecordStore, StoreError, eq, in_, neq
from coachcal.utils import Clock, system_clock

logger = logging.getLogger(__name__)

OVERRIDES = "occurrence_overrides"

# Columns each collection accepts from a calendar edit.
_EVENT_COLUMNS = frozenset(
    {"title", "description", "location", "start_time", "end_time", "is_recurring", "event_type"}
)
_APPOINTMENT_COLUMNS = _EVENT_COLUMNS - {"event_type"}


class CalendarRepository:
    """Reads and writes calendar items on behalf of one viewer."""

    def __init__(self, store: RecordStore, clock: Clock = system_clock) -> None:
        self._store = store
        self._clock = clock
        self._known: dict[str, CalendarItem] = {}

    async def load_items(self, user_id: str) -> list[CalendarItem]:
        """Active appointments and events the user takes part in, by start time."""
        try:
            appointments = await self._select_either(
                CalendarItemKind.APPOINTMENT.collection,
                ("trainer_id", "client_id"),
                user_id,
                neq("status", BookingStatus.CANCELLED.value),
            )
            events = await self._select_either(
                CalendarItemKind.EVENT.collection, ("user_id", "client_id"), user_id
            )
        except StoreError as exc:
            raise PersistenceError(f"Loading calendar of {user_id} failed: {exc}") from exc

        items = [CalendarItem.from_appointment(row, viewer_id=user_id) for row in appointments]
        items.extend(CalendarItem.from_event(row) for row in events)
        items.sort(key=lambda i: i.start_time)
        self._known = {item.id: item for item in items}
        return items

    async def resolve(self, item_id: str) -> CalendarItem:
        """Return the item with ``item_id``, looking it up once if it was not loaded."""
        item = self._known.get(item_id)
        if item is not None:
            return item
        for kind in (CalendarItemKind.EVENT, CalendarItemKind.APPOINTMENT):
            try:
                row = await self._store.get(kind.collection, item_id)
            except RecordNotFound:
                continue
            except StoreError as exc:
                raise PersistenceError(f"Resolving {item_id} failed: {exc}") from exc
            if kind is CalendarItemKind.EVENT:
                item = CalendarItem.from_event(row)
            else:
                item = CalendarItem.from_appointment(row)
            self._known[item_id] = item
            return item
        raise NotFoundError(f"Calendar item {item_id} not found")

    async def add_event(self, values: dict[str, Any]) -> CalendarItem:
        try:
            row = await self._store.insert(CalendarItemKind.EVENT.collection, values)
        except StoreError as exc:
            raise PersistenceError(f"Adding event failed: {exc}") from exc
        item = CalendarItem.from_event(row)
        self._known[item.id] = item
        return item

    async def update_item(self, item: CalendarItem, changes: dict[str, Any]) -> CalendarItem:
        """Write ``changes`` to the item's own collection and return the updated item."""
        allowed = _EVENT_COLUMNS if item.kind is CalendarItemKind.EVENT else _APPOINTMENT_COLUMNS
        values = {k: v for k, v in changes.items() if k in allowed}
        if item.kind is CalendarItemKind.APPOINTMENT:
            values["updated_at"] = self._clock()
        try:
            await self._store.update(item.kind.collection, item.id, values)
        except RecordNotFound as exc:
            self._known.pop(item.id, None)
            raise NotFoundError(str(exc)) from exc
        except StoreError as exc:
            raise PersistenceError(f"Updating {item.id} failed: {exc}") from exc
        updated = item.model_copy(update={k: v for k, v in values.items() if k in allowed})
        self._known[item.id] = updated
        return updated

    async def delete_item(self, item: CalendarItem) -> None:
        """Remove an item from the calendar.

        Events are deleted. Appointments are never physically removed;
        they are cancelled instead, which also drops them from the calendar.
        """
        try:
            if item.kind is CalendarItemKind.EVENT:
                await self._store.delete(item.kind.collection, item.id)
            else:
                now = self._clock()
                await self._store.update(item.kind.collection, item.id, {
                    "status": BookingStatus.CANCELLED.value,
                    "cancellation_date": now,
                    "updated_at": now,
                })
        except RecordNotFound as exc:
            raise NotFoundError(str(exc)) from exc
        except StoreError as exc:
            raise PersistenceError(f"Deleting {item.id} failed: {exc}") from exc
        finally:
            self._known.pop(item.id, None)

    # ------------------------------------------------------------------ #
    # Overrides
    # ------------------------------------------------------------------ #

    async def overrides_for(self, base_ids: Iterable[str]) -> list[OccurrenceOverride]:
        base_ids = list(base_ids)
        if not base_ids:
            return []
        try:
            rows = await self._store.select(OVERRIDES, in_("base_id", base_ids))
        except StoreError as exc:
            raise PersistenceError(f"Loading occurrence overrides failed: {exc}") from exc
        return [OccurrenceOverride.model_validate(row) for row in rows]

    async def save_override(
        self, base_id: str, index: int, deleted: bool = False, **fields: Any
    ) -> OccurrenceOverride:
        """Create or extend the override of occurrence ``index`` of ``base_id``."""
        try:
            rows = await self._store.select(
                OVERRIDES, eq("base_id", base_id), eq("occurrence_index", index)
            )
            values = {k: v for k, v in fields.items() if k in OccurrenceOverride.model_fields}
            if rows:
                existing = rows[0]
                row = await self._store.update(
                    OVERRIDES, existing["id"], {**values, "deleted": deleted or existing.get("deleted", False)}
                )
            else:
                row = await self._store.insert(OVERRIDES, {
                    "base_id": base_id,
                    "occurrence_index": index,
                    "deleted": deleted,
                    **values,
                })
        except StoreError as exc:
            raise PersistenceError(f"Saving override {base_id}#{index} failed: {exc}") from exc
        logger.debug("Saved override %s#%d (deleted=%s)", base_id, index, deleted)
        return OccurrenceOverride.model_validate(row)

    async def delete_overrides(self, base_id: str) -> Optional[int]:
        """Drop all overrides of a series. Returns None when the cleanup failed."""
        try:
            return await self._store.delete_where(OVERRIDES, eq("base_id", base_id))
        except StoreError as exc:
            logger.warning("Could not delete overrides of %s: %s", base_id, exc)
            return None

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _select_either(
        self, collection: str, columns: tuple[str, ...], user_id: str, *extra
    ) -> list[dict[str, Any]]:
        """Rows where any of ``columns`` equals ``user_id``, without duplicates."""
        seen: dict[str, dict[str, Any]] = {}
        for column in columns:
            for row in await self._store.select(collection, eq(column, user_id), *extra):
                seen.setdefault(row["id"], row)
        return list(seen.values())
