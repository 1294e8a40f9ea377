"""
Notification side effects of the booking lifecycle.

Creating and cleaning up notifications is best effort: a failure is
logged and swallowed so it never rolls back the booking change that
triggered it.
"""

import logging
from datetime import datetime
from typing import Optional

from coachcal.messages import message_templates
from coachcal.schemas.booking_schema import Booking
from coachcal.schemas.notification_schema import Notification, NotificationType
from coachcal.store.base import RecordNotFound, RecordStore, StoreError, eq

logger = logging.getLogger(__name__)

NOTIFICATIONS = "notifications"
APPOINTMENT_REFERENCE = "appointment"


class NotificationService:
    """Writes to and cleans up the ``notifications`` collection."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def notify(
        self,
        user_id: str,
        content: str,
        reference_id: Optional[str] = None,
        sender_id: Optional[str] = None,
        notification_type: NotificationType = NotificationType.APPOINTMENT,
        reference_type: Optional[str] = APPOINTMENT_REFERENCE,
    ) -> Notification:
        """Create a single unread notification. Raises StoreError on failure."""
        row = await self._store.insert(NOTIFICATIONS, {
            "user_id": user_id,
            "type": notification_type.value,
            "content": content,
            "reference_id": reference_id,
            "reference_type": reference_type,
            "sender_id": sender_id,
            "is_read": False,
        })
        return Notification.model_validate(row)

    async def send_booking_created(
        self, booking: Booking, client_name: str, service_name: str
    ) -> bool:
        """Tell trainer and client about an auto-confirmed booking."""
        return await self._send_pair(
            booking,
            trainer_content=message_templates.new_booking_for_trainer(
                client_name, service_name, booking.start_time
            ),
            client_content=message_templates.booking_confirmed_for_client(
                service_name, booking.start_time
            ),
            trainer_sender=booking.client_id,
        )

    async def send_booking_confirmed(self, booking: Booking, service_name: str) -> bool:
        """Tell trainer and client that the trainer confirmed a pending booking."""
        return await self._send_pair(
            booking,
            trainer_content=message_templates.trainer_confirmed_booking(
                booking.title, booking.start_time
            ),
            client_content=message_templates.booking_confirmed_for_client(
                service_name, booking.start_time
            ),
            trainer_sender=booking.trainer_id,
        )

    async def _send_pair(
        self,
        booking: Booking,
        trainer_content: str,
        client_content: str,
        trainer_sender: str,
    ) -> bool:
        try:
            await self.notify(
                booking.trainer_id, trainer_content,
                reference_id=booking.id, sender_id=trainer_sender,
            )
            await self.notify(
                booking.client_id, client_content,
                reference_id=booking.id, sender_id=booking.trainer_id,
            )
        except StoreError as exc:
            logger.error("Creating notifications for booking %s failed: %s", booking.id, exc)
            return False
        logger.info("Sent booking notifications for %s", booking.id)
        return True

    async def delete_for_reference(
        self, reference_id: str, reference_type: str = APPOINTMENT_REFERENCE
    ) -> int:
        """Remove notifications pointing at a record. Returns -1 on failure."""
        try:
            removed = await self._store.delete_where(
                NOTIFICATIONS,
                eq("reference_id", reference_id),
                eq("reference_type", reference_type),
            )
        except StoreError as exc:
            logger.warning("Could not delete notifications of %s: %s", reference_id, exc)
            return -1
        logger.debug("Deleted %d notifications of %s", removed, reference_id)
        return removed

    async def list_for(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        filters = [eq("user_id", user_id)]
        if unread_only:
            filters.append(eq("is_read", False))
        rows = await self._store.select(NOTIFICATIONS, *filters)
        return [Notification.model_validate(row) for row in rows]

    async def mark_read(self, notification_id: str, read_at: Optional[datetime] = None) -> bool:
        try:
            await self._store.update(NOTIFICATIONS, notification_id, {
                "is_read": True,
                "updated_at": read_at or datetime.now(),
            })
        except RecordNotFound:
            return False
        return True
