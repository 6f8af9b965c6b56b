"""Doctor endpoints: attended units, availability management and appointment queue."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks

from ubs_booking.dependencies import CurrentDoctor, DatabaseSession, NotifierDep
from ubs_booking.schemas.appointments import AppointmentActionResponse, AppointmentListResponse
from ubs_booking.schemas.availability import (
    DateAvailabilityRequest,
    DateAvailabilityResponse,
    MessageResponse,
    WeeklyWindowCreate,
    WeeklyWindowRemove,
    WeeklyWindowResponse,
)
from ubs_booking.schemas.units import UnitSummary
from ubs_booking.services.appointment_service import AppointmentService
from ubs_booking.services.availability_service import AvailabilityService
from ubs_booking.services.booking_service import BookingService
from ubs_booking.services.directory_service import DirectoryService
from ubs_booking.services.notification_service import deliver_notifications

router = APIRouter()


@router.get("/ubs", response_model=list[UnitSummary])
async def list_my_units(doctor: CurrentDoctor, db: DatabaseSession) -> list[UnitSummary]:
    """List the health units the doctor attends, by name."""
    units = await DirectoryService(db).list_units_for_doctor(doctor.id)
    return [UnitSummary.model_validate(unit) for unit in units]


# ============================================================================
# Weekly availability
# ============================================================================


@router.post("/availability", response_model=WeeklyWindowResponse)
async def set_availability(
    data: WeeklyWindowCreate,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> WeeklyWindowResponse:
    """
    Declare the doctor's hours at a unit for one weekday.

    - **ubs_id**: Health unit
    - **day_of_week**: 0 (Sunday) to 6 (Saturday)
    - **start_time** / **end_time**: Inclusive bookable range

    An existing window for the same day is replaced and reactivated.
    """
    return await AvailabilityService(db).set_weekly_window(
        doctor.id, data.ubs_id, data.day_of_week, data.start_time, data.end_time
    )


@router.delete("/availability", response_model=MessageResponse)
async def remove_availability(
    data: WeeklyWindowRemove,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> MessageResponse:
    """Deactivate the doctor's window for one weekday at a unit."""
    await AvailabilityService(db).remove_weekly_window(doctor.id, data.ubs_id, data.day_of_week)
    return MessageResponse(message="Availability removed")


@router.get("/availability/{ubs_id}", response_model=list[WeeklyWindowResponse])
async def get_availability(
    ubs_id: UUID,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> list[WeeklyWindowResponse]:
    return await AvailabilityService(db).list_weekly_windows(doctor.id, ubs_id)


# ============================================================================
# Specific-date availability
# ============================================================================


@router.post("/date-availability", response_model=DateAvailabilityResponse)
async def toggle_date_availability(
    data: DateAvailabilityRequest,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> DateAvailabilityResponse:
    """
    Toggle a specific date.

    The first call marks the date available; later calls flip it. Once any
    date is listed, patients can only book on dates marked available.
    """
    return await AvailabilityService(db).toggle_date(doctor.id, data.ubs_id, data.available_date)


@router.delete("/date-availability", response_model=MessageResponse)
async def remove_date_availability(
    data: DateAvailabilityRequest,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> MessageResponse:
    """Remove a specific date from the doctor's list."""
    await AvailabilityService(db).remove_date(doctor.id, data.ubs_id, data.available_date)
    return MessageResponse(message="Date availability removed")


@router.get("/date-availability/{ubs_id}", response_model=list[DateAvailabilityResponse])
async def get_date_availability(
    ubs_id: UUID,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> list[DateAvailabilityResponse]:
    return await AvailabilityService(db).list_dates(doctor.id, ubs_id)


# ============================================================================
# Appointment queue
# ============================================================================


@router.get("/appointments", response_model=AppointmentListResponse)
async def list_appointments(doctor: CurrentDoctor, db: DatabaseSession) -> AppointmentListResponse:
    """List every appointment of the doctor, newest first."""
    return await AppointmentService(db).list_for_doctor(doctor.id)


@router.get("/appointments/upcoming", response_model=AppointmentListResponse)
async def list_upcoming(doctor: CurrentDoctor, db: DatabaseSession) -> AppointmentListResponse:
    return await AppointmentService(db).list_upcoming_for_doctor(doctor.id)


@router.get("/appointments/today", response_model=AppointmentListResponse)
async def list_today(doctor: CurrentDoctor, db: DatabaseSession) -> AppointmentListResponse:
    return await AppointmentService(db).list_today_for_doctor(doctor.id)


@router.get("/appointments/date/{on}", response_model=AppointmentListResponse)
async def list_on_date(on: date, doctor: CurrentDoctor, db: DatabaseSession) -> AppointmentListResponse:
    return await AppointmentService(db).list_for_doctor_on(doctor.id, on)


@router.put("/appointments/{appointment_id}/confirm", response_model=AppointmentActionResponse)
async def confirm_appointment(
    appointment_id: UUID,
    doctor: CurrentDoctor,
    db: DatabaseSession,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
) -> AppointmentActionResponse:
    """Confirm a pending appointment of the doctor and notify the patient."""
    outcome = await BookingService(db).confirm_booking(doctor.id, appointment_id)
    background_tasks.add_task(deliver_notifications, notifier, outcome.notifications)
    return AppointmentActionResponse(message="Appointment confirmed", appointment=outcome.appointment)


@router.put("/appointments/{appointment_id}/complete", response_model=AppointmentActionResponse)
async def complete_appointment(
    appointment_id: UUID,
    doctor: CurrentDoctor,
    db: DatabaseSession,
) -> AppointmentActionResponse:
    """Mark a confirmed appointment of the doctor as completed."""
    outcome = await BookingService(db).complete_booking(doctor.id, appointment_id)
    return AppointmentActionResponse(message="Appointment completed", appointment=outcome.appointment)
