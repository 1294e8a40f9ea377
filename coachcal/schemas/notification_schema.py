"""Notification records produced by the booking lifecycle."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationType(str, Enum):
    APPOINTMENT = "appointment"
    MESSAGE = "message"
    SYSTEM = "system"


class Notification(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    content: str
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    sender_id: Optional[str] = None
    is_read: bool = False
