"""Read-only lookups of units, doctors and patients."""

from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ubs_booking.core.exceptions import NotFoundException
from ubs_booking.models.doctors import doctors
from ubs_booking.models.patients import patients
from ubs_booking.models.ubs import doctor_ubs, ubs

DOCTOR_COLUMNS = (
    doctors.c.id,
    doctors.c.crm,
    doctors.c.name,
    doctors.c.email,
    doctors.c.phone,
    doctors.c.specialty,
)


class DirectoryService:
    """Service for unit/doctor directory lookups."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_unit(self, ubs_id: UUID) -> dict:
        """
        Get a unit by ID.

        Raises:
            NotFoundException: If the unit does not exist
        """
        result = await self.db.execute(select(ubs).where(ubs.c.id == ubs_id))
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Health unit not found")
        return dict(row)

    async def get_patient(self, patient_id: UUID) -> dict:
        """Get a patient by ID."""
        result = await self.db.execute(select(patients).where(patients.c.id == patient_id))
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Patient not found")
        return dict(row)

    async def list_doctors_for_unit(self, ubs_id: UUID) -> list[dict]:
        """
        List doctors actively linked to a unit.

        Ordered by link age, then doctor ID, which is the booking
        tie-break order.
        """
        stmt = (
            select(*DOCTOR_COLUMNS)
            .join(doctor_ubs, doctor_ubs.c.doctor_id == doctors.c.id)
            .where(
                and_(
                    doctor_ubs.c.ubs_id == ubs_id,
                    doctor_ubs.c.is_active.is_(True),
                )
            )
            .order_by(doctor_ubs.c.created_at.asc(), doctors.c.id.asc())
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def list_units_for_doctor(self, doctor_id: UUID) -> list[dict]:
        """List units a doctor is actively linked to, ordered by name."""
        stmt = (
            select(ubs.c.id, ubs.c.name, ubs.c.address, ubs.c.district, ubs.c.city, ubs.c.state)
            .join(doctor_ubs, doctor_ubs.c.ubs_id == ubs.c.id)
            .where(
                and_(
                    doctor_ubs.c.doctor_id == doctor_id,
                    doctor_ubs.c.is_active.is_(True),
                )
            )
            .order_by(ubs.c.name.asc())
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def resolve_doctor(self, ubs_id: UUID, doctor_id: UUID | None = None) -> dict:
        """
        Pick the doctor who will serve a booking at a unit.

        An explicitly requested doctor must be actively linked to the unit.
        Otherwise the doctor with the oldest active link wins.

        Raises:
            NotFoundException: If no suitable doctor is linked to the unit
        """
        candidates = await self.list_doctors_for_unit(ubs_id)

        if doctor_id is not None:
            for doctor in candidates:
                if doctor["id"] == doctor_id:
                    return doctor
            raise NotFoundException("Requested doctor does not attend this health unit")

        if not candidates:
            raise NotFoundException("No doctor available at this health unit")
        return candidates[0]
