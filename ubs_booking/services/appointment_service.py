"""Appointment lifecycle: creation, status transitions, queue renumbering and queries."""

from collections.abc import Callable
from datetime import date, datetime, time
from uuid import UUID

import structlog
from sqlalchemy import and_, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ubs_booking.core.clock import clinic_now
from ubs_booking.core.exceptions import (
    AlreadyCancelledException,
    ConflictException,
    NotFoundException,
)
from ubs_booking.database import transaction_scope
from ubs_booking.models.appointments import appointments
from ubs_booking.schemas.appointments import (
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentType,
    sources_for,
)

logger = structlog.get_logger(__name__)

NOT_CANCELLED = appointments.c.status != AppointmentStatus.CANCELLED.value


class AppointmentService:
    """Service for managing appointment records."""

    def __init__(self, db: AsyncSession, now: Callable[[], datetime] = clinic_now):
        """Initialize service with database session and clock."""
        self.db = db
        self.now = now

    async def is_slot_free(self, doctor_id: UUID, ubs_id: UUID, on: date, at: time) -> bool:
        """True when no non-cancelled appointment holds this exact slot."""
        stmt = (
            select(func.count())
            .select_from(appointments)
            .where(
                and_(
                    appointments.c.doctor_id == doctor_id,
                    appointments.c.ubs_id == ubs_id,
                    appointments.c.appointment_date == on,
                    appointments.c.appointment_time == at,
                    NOT_CANCELLED,
                )
            )
        )
        result = await self.db.execute(stmt)
        return (result.scalar() or 0) == 0

    async def create(
        self,
        patient_id: UUID,
        doctor_id: UUID,
        ubs_id: UUID,
        appointment_type: AppointmentType,
        specialty: str,
        on: date,
        at: time,
        queue_position: int,
    ) -> AppointmentResponse:
        """
        Insert a pending appointment in the current transaction.

        The caller owns the transaction and any notifications.
        """
        stmt = (
            insert(appointments)
            .values(
                patient_id=patient_id,
                doctor_id=doctor_id,
                ubs_id=ubs_id,
                appointment_type=appointment_type.value,
                specialty=specialty,
                appointment_date=on,
                appointment_time=at,
                queue_position=queue_position,
                status=AppointmentStatus.PENDING.value,
            )
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        return AppointmentResponse.model_validate(dict(result.mappings().one()))

    async def get(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        result = await self.db.execute(
            select(appointments).where(appointments.c.id == appointment_id)
        )
        row = result.mappings().first()
        if not row:
            raise NotFoundException("Appointment not found")
        return AppointmentResponse.model_validate(dict(row))

    async def _transition(
        self,
        appointment_id: UUID,
        target: AppointmentStatus,
    ) -> AppointmentResponse | None:
        """
        Compare-and-swap the status to ``target`` from any allowed source.

        Returns the updated row, or None when the appointment is missing or
        not in a source status. Runs in the caller's transaction.
        """
        values: dict = {"status": target.value, "updated_at": func.now()}
        if target is AppointmentStatus.CANCELLED:
            values["cancelled_at"] = func.now()

        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.status.in_([s.value for s in sources_for(target)]),
                )
            )
            .values(**values)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return AppointmentResponse.model_validate(dict(row)) if row else None

    async def _reject_transition(self, appointment_id: UUID, target: AppointmentStatus) -> None:
        """Raise the error explaining why a transition did not apply."""
        current = await self.get(appointment_id)
        if target is AppointmentStatus.CANCELLED and current.status is AppointmentStatus.CANCELLED:
            raise AlreadyCancelledException()
        raise ConflictException(
            f"Cannot change appointment from {current.status.value} to {target.value}"
        )

    async def cancel(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Cancel an appointment and close the gap it leaves in the queue.

        The status flip and the renumbering of every later non-cancelled
        appointment commit together. Because the flip only applies to a
        pending or confirmed appointment, a repeated cancel cannot renumber
        twice.

        Raises:
            NotFoundException: If appointment not found
            AlreadyCancelledException: If it was already cancelled
            ConflictException: If it is already completed
        """
        async with transaction_scope(self.db):
            cancelled = await self._transition(appointment_id, AppointmentStatus.CANCELLED)
            if cancelled is None:
                await self._reject_transition(appointment_id, AppointmentStatus.CANCELLED)

            renumber = (
                update(appointments)
                .where(
                    and_(
                        appointments.c.queue_position > cancelled.queue_position,
                        appointments.c.id != appointment_id,
                        NOT_CANCELLED,
                    )
                )
                .values(queue_position=appointments.c.queue_position - 1)
            )
            result = await self.db.execute(renumber)

        logger.info(
            "appointment_cancelled",
            appointment_id=str(appointment_id),
            queue_position=cancelled.queue_position,
            renumbered=result.rowcount,
        )
        return cancelled

    async def confirm(self, appointment_id: UUID) -> AppointmentResponse:
        """Move a pending appointment to confirmed."""
        return await self._apply(appointment_id, AppointmentStatus.CONFIRMED)

    async def complete(self, appointment_id: UUID) -> AppointmentResponse:
        """Move a confirmed appointment to completed."""
        return await self._apply(appointment_id, AppointmentStatus.COMPLETED)

    async def _apply(self, appointment_id: UUID, target: AppointmentStatus) -> AppointmentResponse:
        async with transaction_scope(self.db):
            updated = await self._transition(appointment_id, target)
            if updated is None:
                await self._reject_transition(appointment_id, target)

        logger.info("appointment_status_changed", appointment_id=str(appointment_id), status=target.value)
        return updated

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def _upcoming(self):
        now = self.now()
        return or_(
            appointments.c.appointment_date > now.date(),
            and_(
                appointments.c.appointment_date == now.date(),
                appointments.c.appointment_time >= now.time().replace(microsecond=0),
            ),
        )

    def _past(self):
        now = self.now()
        return or_(
            appointments.c.appointment_date < now.date(),
            and_(
                appointments.c.appointment_date == now.date(),
                appointments.c.appointment_time < now.time().replace(microsecond=0),
            ),
        )

    async def _list(self, *conditions, newest_first: bool = False) -> AppointmentListResponse:
        order = (
            (appointments.c.appointment_date.desc(), appointments.c.appointment_time.desc())
            if newest_first
            else (appointments.c.appointment_date.asc(), appointments.c.appointment_time.asc())
        )
        stmt = select(appointments).where(and_(*conditions)).order_by(*order)
        result = await self.db.execute(stmt)
        items = [AppointmentResponse.model_validate(dict(row)) for row in result.mappings().all()]
        return AppointmentListResponse(total=len(items), items=items)

    async def list_for_patient(self, patient_id: UUID) -> AppointmentListResponse:
        """Active appointments of a patient, newest first."""
        return await self._list(
            appointments.c.patient_id == patient_id, NOT_CANCELLED, newest_first=True
        )

    async def list_upcoming_for_patient(self, patient_id: UUID) -> AppointmentListResponse:
        """Active future appointments of a patient, soonest first."""
        return await self._list(appointments.c.patient_id == patient_id, NOT_CANCELLED, self._upcoming())

    async def list_past_for_patient(self, patient_id: UUID) -> AppointmentListResponse:
        """Past appointments of a patient in any status, newest first."""
        return await self._list(
            appointments.c.patient_id == patient_id, self._past(), newest_first=True
        )

    async def list_for_patient_on(self, patient_id: UUID, on: date) -> AppointmentListResponse:
        """Appointments of a patient on one date."""
        return await self._list(
            appointments.c.patient_id == patient_id, appointments.c.appointment_date == on
        )

    async def list_for_doctor(self, doctor_id: UUID) -> AppointmentListResponse:
        """All appointments of a doctor, newest first."""
        return await self._list(appointments.c.doctor_id == doctor_id, newest_first=True)

    async def list_upcoming_for_doctor(self, doctor_id: UUID) -> AppointmentListResponse:
        """Active future appointments of a doctor."""
        return await self._list(appointments.c.doctor_id == doctor_id, NOT_CANCELLED, self._upcoming())

    async def list_for_doctor_on(self, doctor_id: UUID, on: date) -> AppointmentListResponse:
        """Active appointments of a doctor on one date."""
        return await self._list(
            appointments.c.doctor_id == doctor_id,
            appointments.c.appointment_date == on,
            NOT_CANCELLED,
        )

    async def list_today_for_doctor(self, doctor_id: UUID) -> AppointmentListResponse:
        """Active appointments of a doctor today."""
        return await self.list_for_doctor_on(doctor_id, self.now().date())
