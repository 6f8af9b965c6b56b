"""Booking workflow: validation, doctor resolution, availability and queue assignment."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ubs_booking.core.clock import clinic_now
from ubs_booking.core.exceptions import (
    AlreadyCancelledException,
    AppException,
    ConflictException,
    ForbiddenException,
    TransientStoreError,
    ValidationException,
)
from ubs_booking.database import transaction_scope
from ubs_booking.models.appointments import ACTIVE_SLOT_INDEX
from ubs_booking.schemas.appointments import (
    AppointmentResponse,
    AppointmentStatus,
    BookingCreate,
)
from ubs_booking.services.appointment_service import AppointmentService
from ubs_booking.services.availability_service import AvailabilityService
from ubs_booking.services.directory_service import DirectoryService
from ubs_booking.services.notification_service import Notification, RecipientKind
from ubs_booking.services.queue_service import QueueCounter

logger = structlog.get_logger(__name__)


@dataclass
class BookingOutcome:
    """Result of a state-changing booking operation."""

    appointment: AppointmentResponse
    notifications: list[Notification] = field(default_factory=list)

    @property
    def queue_position(self) -> int:
        return self.appointment.queue_position


def _is_active_slot_violation(error: IntegrityError) -> bool:
    message = str(error.orig) if error.orig is not None else str(error)
    # PostgreSQL names the index, SQLite lists its columns
    return ACTIVE_SLOT_INDEX in message or "appointments.appointment_time" in message


def _format_slot(appointment: AppointmentResponse) -> str:
    return (
        f"{appointment.appointment_date.strftime('%d/%m/%Y')} "
        f"at {appointment.appointment_time.strftime('%H:%M')}"
    )


class BookingService:
    """Orchestrates booking requests and owner-checked status changes."""

    def __init__(self, db: AsyncSession, now: Callable[[], datetime] = clinic_now):
        """Initialize service with database session and clock."""
        self.db = db
        self.now = now
        self.directory = DirectoryService(db)
        self.availability = AvailabilityService(db, now=now)
        self.appointments = AppointmentService(db, now=now)
        self.queue = QueueCounter(db)

    async def book(self, patient_id: UUID, data: BookingCreate) -> BookingOutcome:
        """
        Book an appointment for a patient.

        Checks run in order: future date/time, unit and doctor resolution,
        date gate, weekly window, slot conflict. The queue position and the
        appointment row are written in one transaction, so a failed booking
        leaves neither behind.

        Args:
            patient_id: Authenticated patient
            data: Booking request

        Returns:
            Created appointment with the notifications to deliver

        Raises:
            ValidationException: If the slot is not in the future
            NotFoundException: If the unit, patient or doctor cannot be resolved
            ConflictException: If the doctor is unavailable or the slot is taken
            TransientStoreError: If the store aborted the transaction
        """
        log = logger.bind(
            patient_id=str(patient_id),
            ubs_id=str(data.ubs_id),
            appointment_date=data.appointment_date.isoformat(),
            appointment_time=data.appointment_time.isoformat(),
        )

        try:
            doctor = await self._check_bookable(patient_id, data)
        except AppException as e:
            await self.db.rollback()
            log.info("booking_rejected", kind=e.kind, reason=e.message)
            raise

        try:
            async with transaction_scope(self.db):
                position = await self.queue.next_position()
                appointment = await self.appointments.create(
                    patient_id=patient_id,
                    doctor_id=doctor["id"],
                    ubs_id=data.ubs_id,
                    appointment_type=data.appointment_type,
                    specialty=data.specialty,
                    on=data.appointment_date,
                    at=data.appointment_time,
                    queue_position=position,
                )
        except IntegrityError as e:
            if _is_active_slot_violation(e):
                log.info("booking_rejected", kind="Conflict", reason="slot taken concurrently")
                raise ConflictException("This time slot is already booked") from e
            log.warning("booking_aborted", error=str(e.orig))
            raise TransientStoreError() from e

        log.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            doctor_id=str(appointment.doctor_id),
            queue_position=appointment.queue_position,
        )

        return BookingOutcome(
            appointment=appointment,
            notifications=[
                Notification(
                    recipient_id=patient_id,
                    recipient_kind=RecipientKind.PATIENT,
                    message=(
                        f"Appointment for {appointment.specialty} booked! "
                        f"Queue position: {appointment.queue_position}"
                    ),
                ),
                Notification(
                    recipient_id=appointment.doctor_id,
                    recipient_kind=RecipientKind.DOCTOR,
                    message=(
                        f"New appointment: {appointment.specialty} on {_format_slot(appointment)}"
                    ),
                ),
            ],
        )

    async def _check_bookable(self, patient_id: UUID, data: BookingCreate) -> dict:
        """Run every read-only check and return the doctor to book with."""
        requested_at = datetime.combine(data.appointment_date, data.appointment_time)
        if requested_at <= self.now():
            raise ValidationException("Cannot book an appointment for a past date or time")

        await self.directory.get_unit(data.ubs_id)
        await self.directory.get_patient(patient_id)
        doctor = await self.directory.resolve_doctor(data.ubs_id, data.doctor_id)

        if not await self.availability.date_gate_passes(
            doctor["id"], data.ubs_id, data.appointment_date
        ):
            raise ConflictException("Doctor is not available on this date")

        if not await self.availability.within_weekly_window(
            doctor["id"], data.ubs_id, data.appointment_date, data.appointment_time
        ):
            raise ConflictException("Doctor is not available at this time")

        if not await self.appointments.is_slot_free(
            doctor["id"], data.ubs_id, data.appointment_date, data.appointment_time
        ):
            raise ConflictException("This time slot is already booked")

        return doctor

    async def cancel_booking(self, patient_id: UUID, appointment_id: UUID) -> BookingOutcome:
        """
        Cancel a patient's own appointment and notify the doctor.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If it belongs to another patient
            AlreadyCancelledException: If it was already cancelled
        """
        try:
            current = await self.appointments.get(appointment_id)
            if current.patient_id != patient_id:
                raise ForbiddenException("You cannot cancel another patient's appointment")
            if current.status is AppointmentStatus.CANCELLED:
                raise AlreadyCancelledException()
        except AppException:
            await self.db.rollback()
            raise

        cancelled = await self.appointments.cancel(appointment_id)

        return BookingOutcome(
            appointment=cancelled,
            notifications=[
                Notification(
                    recipient_id=cancelled.doctor_id,
                    recipient_kind=RecipientKind.DOCTOR,
                    message=(
                        f"Appointment cancelled: {cancelled.specialty} on {_format_slot(cancelled)}"
                    ),
                )
            ],
        )

    async def _owned_by_doctor(self, doctor_id: UUID, appointment_id: UUID, action: str) -> None:
        try:
            current = await self.appointments.get(appointment_id)
            if current.doctor_id != doctor_id:
                raise ForbiddenException(f"You cannot {action} another doctor's appointment")
        except AppException:
            await self.db.rollback()
            raise

    async def confirm_booking(self, doctor_id: UUID, appointment_id: UUID) -> BookingOutcome:
        """Confirm one of the doctor's appointments and notify the patient."""
        await self._owned_by_doctor(doctor_id, appointment_id, "confirm")
        confirmed = await self.appointments.confirm(appointment_id)

        return BookingOutcome(
            appointment=confirmed,
            notifications=[
                Notification(
                    recipient_id=confirmed.patient_id,
                    recipient_kind=RecipientKind.PATIENT,
                    message=(
                        f"Your appointment for {confirmed.specialty} was confirmed by the doctor!"
                    ),
                )
            ],
        )

    async def complete_booking(self, doctor_id: UUID, appointment_id: UUID) -> BookingOutcome:
        """Mark one of the doctor's appointments as completed."""
        await self._owned_by_doctor(doctor_id, appointment_id, "complete")
        completed = await self.appointments.complete(appointment_id)
        return BookingOutcome(appointment=completed)
