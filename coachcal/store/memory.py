"""
In-memory record store.

Backs tests, demos and single-process deployments. In production the
same interface is implemented over the hosted data backend; this store
mirrors its semantics closely enough that the engine cannot tell the
difference: generated ids, partial unique constraints, conditional
inserts and optimistic-concurrency updates.
"""

import asyncio
import copy
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Optional

from coachcal.store.base import (
    ConstraintViolation,
    Filter,
    RecordNotFound,
    Row,
    RowPredicate,
    StaleRecord,
    StoreError,
    matches_all,
)
from coachcal.utils import to_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UniqueConstraint:
    """Unique index over ``fields``, optionally partial (only rows where ``where`` holds)."""

    name: str
    fields: tuple[str, ...]
    where: Optional[Callable[[Row], bool]] = None

    def applies_to(self, row: Row) -> bool:
        return self.where is None or self.where(row)

    def key(self, row: Row) -> tuple:
        return tuple(row.get(f) for f in self.fields)


# At most one active appointment may start at a given time for a trainer.
ACTIVE_APPOINTMENT_START = UniqueConstraint(
    name="appointments_active_trainer_start",
    fields=("trainer_id", "start_time"),
    where=lambda row: row.get("status") != "cancelled",
)

# Timestamp columns are kept as naive local datetimes, however callers send them.
TIMESTAMP_FIELDS: dict[str, tuple[str, ...]] = {
    "appointments": ("start_time", "end_time", "created_at", "updated_at", "cancellation_date"),
    "events": ("start_time", "end_time"),
    "occurrence_overrides": ("start_time", "end_time"),
}

DEFAULT_CONSTRAINTS: dict[str, list[UniqueConstraint]] = {
    "appointments": [ACTIVE_APPOINTMENT_START],
    "trainer_settings": [UniqueConstraint(name="trainer_settings_trainer", fields=("trainer_id",))],
    "occurrence_overrides": [
        UniqueConstraint(name="occurrence_override_key", fields=("base_id", "occurrence_index")),
    ],
}


class InMemoryStore:
    """Dict-of-dicts implementation of ``RecordStore``."""

    def __init__(self, constraints: Optional[dict[str, list[UniqueConstraint]]] = None) -> None:
        self._collections: dict[str, dict[str, Row]] = defaultdict(dict)
        self._constraints = DEFAULT_CONSTRAINTS if constraints is None else constraints
        self._lock = asyncio.Lock()
        self._failures: dict[tuple[str, str], int] = defaultdict(int)

    # ------------------------------------------------------------------ #
    # Fault injection
    # ------------------------------------------------------------------ #

    def fail_next(self, collection: str, operation: str, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` on ``collection`` raise StoreError."""
        self._failures[(collection, operation)] += times

    def _maybe_fail(self, collection: str, operation: str) -> None:
        key = (collection, operation)
        if self._failures[key] > 0:
            self._failures[key] -= 1
            raise StoreError(f"Simulated {operation} failure on {collection}")

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def select(
        self,
        collection: str,
        *filters: Filter,
        order_by: tuple[str, ...] = (),
        descending: bool = False,
    ) -> list[Row]:
        self._maybe_fail(collection, "select")
        rows = [
            copy.deepcopy(row)
            for row in self._collections[collection].values()
            if matches_all(row, filters)
        ]
        if order_by:
            rows.sort(
                key=lambda r: tuple((r.get(f) is None, r.get(f)) for f in order_by),
                reverse=descending,
            )
        return rows

    async def get(self, collection: str, record_id: str) -> Row:
        self._maybe_fail(collection, "get")
        row = self._collections[collection].get(record_id)
        if row is None:
            raise RecordNotFound(collection, record_id)
        return copy.deepcopy(row)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def insert(
        self, collection: str, values: Row, reject_if: Optional[RowPredicate] = None
    ) -> Row:
        async with self._lock:
            self._maybe_fail(collection, "insert")
            rows = self._collections[collection]
            row = self._normalize(collection, copy.deepcopy(values))
            row.setdefault("id", str(uuid.uuid4()))
            if row["id"] in rows:
                raise ConstraintViolation(f"{collection}/{row['id']} already exists")
            if reject_if is not None and any(reject_if(existing) for existing in rows.values()):
                raise ConstraintViolation(f"Conditional insert into {collection} rejected")
            self._check_unique(collection, row)
            rows[row["id"]] = row
            logger.debug("Inserted %s/%s", collection, row["id"])
            return copy.deepcopy(row)

    async def update(
        self,
        collection: str,
        record_id: str,
        changes: Row,
        expect: Optional[Row] = None,
    ) -> Row:
        async with self._lock:
            self._maybe_fail(collection, "update")
            rows = self._collections[collection]
            current = rows.get(record_id)
            if current is None:
                raise RecordNotFound(collection, record_id)
            if expect and any(current.get(k) != v for k, v in expect.items()):
                raise StaleRecord(f"{collection}/{record_id} changed since it was read")
            changes = self._normalize(collection, copy.deepcopy(changes))
            updated = {**current, **changes, "id": record_id}
            self._check_unique(collection, updated, ignore_id=record_id)
            rows[record_id] = updated
            logger.debug("Updated %s/%s: %s", collection, record_id, sorted(changes))
            return copy.deepcopy(updated)

    async def delete(self, collection: str, record_id: str) -> None:
        async with self._lock:
            self._maybe_fail(collection, "delete")
            if self._collections[collection].pop(record_id, None) is None:
                raise RecordNotFound(collection, record_id)
            logger.debug("Deleted %s/%s", collection, record_id)

    async def delete_where(self, collection: str, *filters: Filter) -> int:
        async with self._lock:
            self._maybe_fail(collection, "delete")
            rows = self._collections[collection]
            doomed = [rid for rid, row in rows.items() if matches_all(row, filters)]
            for rid in doomed:
                del rows[rid]
            return len(doomed)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _normalize(collection: str, row: Row) -> Row:
        for field in TIMESTAMP_FIELDS.get(collection, ()):
            value = row.get(field)
            if value is None:
                continue
            try:
                row[field] = to_local(value)
            except (AttributeError, TypeError, ValueError) as exc:
                raise StoreError(f"Invalid {field} {value!r} for {collection}") from exc
        return row

    def _check_unique(self, collection: str, row: Row, ignore_id: Optional[str] = None) -> None:
        for constraint in self._constraints.get(collection, []):
            if not constraint.applies_to(row):
                continue
            key = constraint.key(row)
            for other_id, other in self._collections[collection].items():
                if other_id == ignore_id or not constraint.applies_to(other):
                    continue
                if constraint.key(other) == key:
                    raise ConstraintViolation(
                        f"Unique constraint {constraint.name} violated for {key}"
                    )

    def seed(self, collection: str, rows: list[Row]) -> list[Row]:
        """Load rows synchronously, e.g. from fixtures or a demo data file."""
        stored = []
        for values in rows:
            row = self._normalize(collection, copy.deepcopy(values))
            row.setdefault("id", str(uuid.uuid4()))
            self._check_unique(collection, row, ignore_id=row["id"])
            self._collections[collection][row["id"]] = row
            stored.append(copy.deepcopy(row))
        return stored

    def reset(self) -> None:
        """Drop all rows. Used by test fixtures for isolation."""
        self._collections.clear()
        self._failures.clear()
