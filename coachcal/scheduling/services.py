"""Lookup of the services trainers offer."""

import logging

from coachcal.errors import NotFoundError, PersistenceError
from coachcal.schemas.booking_schema import Service
from coachcal.store.base import RecordNotFound, RecordStore, StoreError, eq

logger = logging.getLogger(__name__)

SERVICES = "services"


class ServiceCatalog:
    """Read access to the ``services`` collection."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def get(self, service_id: str) -> Service:
        """Return a service by id or raise NotFoundError."""
        try:
            row = await self._store.get(SERVICES, service_id)
        except RecordNotFound as exc:
            raise NotFoundError(f"Service {service_id} not found") from exc
        except StoreError as exc:
            raise PersistenceError(f"Loading service {service_id} failed: {exc}") from exc
        return Service.model_validate(row)

    async def for_trainer(self, trainer_id: str) -> list[Service]:
        """All services of a trainer, alphabetically."""
        try:
            rows = await self._store.select(SERVICES, eq("trainer_id", trainer_id), order_by=("name",))
        except StoreError as exc:
            raise PersistenceError(f"Loading services of {trainer_id} failed: {exc}") from exc
        return [Service.model_validate(row) for row in rows]
