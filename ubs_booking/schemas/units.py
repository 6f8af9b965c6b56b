"""Unit and doctor directory schemas."""

from uuid import UUID

from pydantic import BaseModel


class DoctorSummary(BaseModel):
    """Doctor as listed for a unit."""

    id: UUID
    crm: str
    name: str
    email: str
    phone: str | None = None
    specialty: str | None = None

    model_config = {"from_attributes": True}


class UnitDoctorsResponse(BaseModel):
    """Doctors actively linked to a unit."""

    ubs_id: UUID
    doctors: list[DoctorSummary]


class UnitSummary(BaseModel):
    """Health unit a doctor attends."""

    id: UUID
    name: str
    address: str | None = None
    district: str | None = None
    city: str | None = None
    state: str | None = None

    model_config = {"from_attributes": True}
