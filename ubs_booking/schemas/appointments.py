"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def sources_for(target: AppointmentStatus) -> list[AppointmentStatus]:
    """Statuses from which ``target`` can be reached."""
    return [source for source, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class AppointmentType(str, Enum):
    """Appointment type enumeration."""

    EXAM = "exam"
    CONSULTATION = "consultation"


class BookingCreate(BaseModel):
    """Schema for booking a new appointment."""

    ubs_id: UUID
    specialty: str = Field(..., min_length=1, max_length=200)
    appointment_date: date
    appointment_time: time
    appointment_type: AppointmentType = AppointmentType.EXAM
    doctor_id: UUID | None = Field(
        None,
        description="Doctor to book with; defaults to the unit's longest-linked doctor",
    )

    @field_validator("specialty")
    @classmethod
    def strip_specialty(cls, v: str) -> str:
        """Reject blank specialty labels."""
        v = v.strip()
        if not v:
            raise ValueError("Specialty must not be blank")
        return v

    @field_validator("appointment_time")
    @classmethod
    def drop_time_zone(cls, v: time) -> time:
        """Slots are wall-clock times in the clinic timezone."""
        return v.replace(tzinfo=None, microsecond=0)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    doctor_id: UUID
    ubs_id: UUID
    appointment_type: AppointmentType
    specialty: str
    appointment_date: date
    appointment_time: time
    queue_position: int
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    """Schema returned after a successful booking."""

    message: str = "Appointment booked"
    appointment: AppointmentResponse
    queue_position: int


class AppointmentActionResponse(BaseModel):
    """Schema returned after cancel/confirm/complete."""

    message: str
    appointment: AppointmentResponse


class AppointmentListResponse(BaseModel):
    """Schema for appointment list response."""

    total: int
    items: list[AppointmentResponse]
