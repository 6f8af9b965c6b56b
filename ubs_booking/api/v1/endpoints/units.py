"""Health unit lookups used while booking."""

from uuid import UUID

from fastapi import APIRouter

from ubs_booking.dependencies import CurrentPrincipal, DatabaseSession
from ubs_booking.schemas.availability import UnitAvailableDate
from ubs_booking.schemas.units import DoctorSummary, UnitDoctorsResponse
from ubs_booking.services.availability_service import AvailabilityService
from ubs_booking.services.directory_service import DirectoryService

router = APIRouter()


@router.get("/{ubs_id}/doctors", response_model=UnitDoctorsResponse)
async def list_unit_doctors(
    ubs_id: UUID,
    _: CurrentPrincipal,
    db: DatabaseSession,
) -> UnitDoctorsResponse:
    """List doctors attending a unit, in booking tie-break order."""
    directory = DirectoryService(db)
    await directory.get_unit(ubs_id)
    doctors = await directory.list_doctors_for_unit(ubs_id)
    return UnitDoctorsResponse(
        ubs_id=ubs_id,
        doctors=[DoctorSummary.model_validate(doctor) for doctor in doctors],
    )


@router.get("/{ubs_id}/available-dates", response_model=list[UnitAvailableDate])
async def list_unit_available_dates(
    ubs_id: UUID,
    _: CurrentPrincipal,
    db: DatabaseSession,
) -> list[UnitAvailableDate]:
    """Upcoming dates any doctor marked available at a unit."""
    return await AvailabilityService(db).list_dates_for_unit(ubs_id)
