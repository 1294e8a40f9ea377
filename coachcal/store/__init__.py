from coachcal.store.base import (
    ConstraintViolation,
    Filter,
    RecordNotFound,
    RecordStore,
    StaleRecord,
    StoreError,
)
from coachcal.store.memory import InMemoryStore, UniqueConstraint

__all__ = [
    "RecordStore",
    "InMemoryStore",
    "UniqueConstraint",
    "Filter",
    "StoreError",
    "RecordNotFound",
    "ConstraintViolation",
    "StaleRecord",
]
