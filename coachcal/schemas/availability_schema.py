"""Trainer availability windows and per-trainer scheduling settings."""

from datetime import time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ConfirmationMode(str, Enum):
    """Whether new bookings wait for the trainer or are confirmed immediately."""
    MANUAL = "manual"
    AUTO = "auto"


class AvailabilityWindow(BaseModel):
    """A weekly recurring time range during which a trainer accepts bookings.

    ``day_of_week`` counts from Sunday = 0 to Saturday = 6.
    """
    id: Optional[str] = None
    trainer_id: str
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    is_available: bool = True

    @model_validator(mode="after")
    def _start_before_end(self) -> "AvailabilityWindow":
        if self.start_time >= self.end_time:
            raise ValueError(
                f"start_time {self.start_time} must be before end_time {self.end_time}"
            )
        return self


class TrainerSettings(BaseModel):
    """Scheduling settings of a single trainer."""
    trainer_id: str
    min_duration: int = Field(gt=0)
    max_duration: int = Field(gt=0)
    time_step: int = Field(gt=0)
    confirmation_mode: ConfirmationMode = ConfirmationMode.MANUAL

    @model_validator(mode="after")
    def _min_not_above_max(self) -> "TrainerSettings":
        if self.min_duration > self.max_duration:
            raise ValueError(
                f"min_duration {self.min_duration} exceeds max_duration {self.max_duration}"
            )
        return self
