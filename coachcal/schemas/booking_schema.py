"""Service, slot and booking data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Service(BaseModel):
    """A bookable service offered by a trainer."""
    id: str
    trainer_id: str
    name: str
    duration: int = Field(gt=0, description="Length in minutes")
    price: float = 0.0
    description: Optional[str] = None


class TimeSlot(BaseModel):
    """A candidate bookable range. Never persisted."""
    start_time: datetime
    end_time: datetime
    is_available: bool = True


class Booking(BaseModel):
    """An appointment between a client and a trainer."""
    id: str
    trainer_id: str
    client_id: str
    service_id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.PENDING
    is_recurring: bool = False
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status != BookingStatus.CANCELLED
