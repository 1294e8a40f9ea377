"""
Persisted-record store abstraction.

The engine talks to its backing data service only through this narrow
async interface: named collections of dict rows, simple predicate
filters, and insert/update/delete by id. A hosted backend adapter and
the in-memory store both implement it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol

Row = dict[str, Any]
RowPredicate = Callable[[Row], bool]


class StoreError(Exception):
    """Transport or persistence failure reported by the backing store."""


class RecordNotFound(StoreError):
    """No row with the requested id exists in the collection."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class ConstraintViolation(StoreError):
    """A write was rejected by a uniqueness constraint or conditional-insert guard."""


class StaleRecord(StoreError):
    """An update's expected field values no longer match the stored row."""


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": lambda a, b: a == b,
    "neq": lambda a, b: a != b,
    "gt": lambda a, b: a is not None and a > b,
    "gte": lambda a, b: a is not None and a >= b,
    "lt": lambda a, b: a is not None and a < b,
    "lte": lambda a, b: a is not None and a <= b,
    "in": lambda a, b: a in b,
}


@dataclass(frozen=True)
class Filter:
    """A single ``field <op> value`` predicate."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator {self.op!r}")

    def matches(self, row: Row) -> bool:
        return _OPERATORS[self.op](row.get(self.field), self.value)


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "eq", value)


def neq(field: str, value: Any) -> Filter:
    return Filter(field, "neq", value)


def gt(field: str, value: Any) -> Filter:
    return Filter(field, "gt", value)


def gte(field: str, value: Any) -> Filter:
    return Filter(field, "gte", value)


def lt(field: str, value: Any) -> Filter:
    return Filter(field, "lt", value)


def lte(field: str, value: Any) -> Filter:
    return Filter(field, "lte", value)


def in_(field: str, values: Iterable[Any]) -> Filter:
    return Filter(field, "in", tuple(values))


def matches_all(row: Row, filters: Iterable[Filter]) -> bool:
    return all(f.matches(row) for f in filters)


class RecordStore(Protocol):
    """Async access to the persisted collections."""

    async def select(
        self,
        collection: str,
        *filters: Filter,
        order_by: tuple[str, ...] = (),
        descending: bool = False,
    ) -> list[Row]: ...

    async def get(self, collection: str, record_id: str) -> Row: ...

    async def insert(
        self, collection: str, values: Row, reject_if: Optional[RowPredicate] = None
    ) -> Row: ...

    async def update(
        self,
        collection: str,
        record_id: str,
        changes: Row,
        expect: Optional[Row] = None,
    ) -> Row: ...

    async def delete(self, collection: str, record_id: str) -> None: ...

    async def delete_where(self, collection: str, *filters: Filter) -> int: ...
