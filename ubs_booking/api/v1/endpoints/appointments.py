"""Patient appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, status

from ubs_booking.dependencies import CurrentPatient, DatabaseSession, NotifierDep
from ubs_booking.schemas.appointments import (
    AppointmentActionResponse,
    AppointmentListResponse,
    BookingCreate,
    BookingResponse,
)
from ubs_booking.services.appointment_service import AppointmentService
from ubs_booking.services.booking_service import BookingService
from ubs_booking.services.notification_service import deliver_notifications

router = APIRouter()


@router.post(
    "/",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def book_appointment(
    data: BookingCreate,
    patient: CurrentPatient,
    db: DatabaseSession,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
) -> BookingResponse:
    """
    Book an appointment at a health unit for the authenticated patient.

    Args:
        data: Unit, specialty, date, time and type of the appointment
        patient: Authenticated patient
        db: Database session
        notifier: Notification channel
        background_tasks: Runs notification delivery after the response

    Returns:
        Created appointment and its queue position
    """
    outcome = await BookingService(db).book(patient.id, data)
    background_tasks.add_task(deliver_notifications, notifier, outcome.notifications)
    return BookingResponse(appointment=outcome.appointment, queue_position=outcome.queue_position)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    summary="List my active appointments",
)
async def list_appointments(patient: CurrentPatient, db: DatabaseSession) -> AppointmentListResponse:
    """List the patient's non-cancelled appointments, newest first."""
    return await AppointmentService(db).list_for_patient(patient.id)


@router.get(
    "/upcoming",
    response_model=AppointmentListResponse,
    summary="List my upcoming appointments",
)
async def list_upcoming(patient: CurrentPatient, db: DatabaseSession) -> AppointmentListResponse:
    """List the patient's future appointments, soonest first."""
    return await AppointmentService(db).list_upcoming_for_patient(patient.id)


@router.get(
    "/past",
    response_model=AppointmentListResponse,
    summary="List my past appointments",
)
async def list_past(patient: CurrentPatient, db: DatabaseSession) -> AppointmentListResponse:
    return await AppointmentService(db).list_past_for_patient(patient.id)


@router.get(
    "/date/{on}",
    response_model=AppointmentListResponse,
    summary="List my appointments on a date",
)
async def list_on_date(on: date, patient: CurrentPatient, db: DatabaseSession) -> AppointmentListResponse:
    return await AppointmentService(db).list_for_patient_on(patient.id, on)


@router.delete(
    "/{appointment_id}",
    response_model=AppointmentActionResponse,
    summary="Cancel my appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    patient: CurrentPatient,
    db: DatabaseSession,
    notifier: NotifierDep,
    background_tasks: BackgroundTasks,
) -> AppointmentActionResponse:
    """
    Cancel one of the patient's appointments.

    Later appointments in the queue move up by one position.

    Raises:
        HTTPException: If not found, not owned, or already cancelled
    """
    outcome = await BookingService(db).cancel_booking(patient.id, appointment_id)
    background_tasks.add_task(deliver_notifications, notifier, outcome.notifications)
    return AppointmentActionResponse(
        message="Appointment cancelled",
        appointment=outcome.appointment,
    )
