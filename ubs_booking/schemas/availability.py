"""Doctor availability schemas."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class WeeklyWindowCreate(BaseModel):
    """Schema for declaring a recurring weekly availability window."""

    ubs_id: UUID
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def validate_window(self) -> "WeeklyWindowCreate":
        """Validate start time is before end time."""
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WeeklyWindowRemove(BaseModel):
    """Schema for deactivating a weekly window."""

    ubs_id: UUID
    day_of_week: int = Field(..., ge=0, le=6)


class WeeklyWindowResponse(BaseModel):
    """Weekly window response schema."""

    id: UUID
    doctor_id: UUID
    ubs_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool
    updated_at: datetime

    model_config = {"from_attributes": True}


class DateAvailabilityRequest(BaseModel):
    """Schema for toggling or removing a specific-date availability."""

    ubs_id: UUID
    available_date: date


class DateAvailabilityResponse(BaseModel):
    """Specific-date availability response schema."""

    id: UUID
    doctor_id: UUID
    ubs_id: UUID
    available_date: date
    is_available: bool

    model_config = {"from_attributes": True}


class UnitAvailableDate(BaseModel):
    """An upcoming available date of a doctor at a unit."""

    available_date: date
    doctor_id: UUID
    doctor_name: str
    specialty: str | None = None


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
