"""Doctor availability: weekly windows, specific dates and bookability checks."""

from collections.abc import Callable
from datetime import date, datetime, time
from uuid import UUID

import structlog
from sqlalchemy import and_, delete, exists, func, not_, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from ubs_booking.core.clock import clinic_now
from ubs_booking.core.exceptions import NotFoundException, ValidationException
from ubs_booking.database import dialect_insert, transaction_scope
from ubs_booking.models.availability import doctor_availability, doctor_date_availability
from ubs_booking.models.doctors import doctors
from ubs_booking.schemas.availability import (
    DateAvailabilityResponse,
    UnitAvailableDate,
    WeeklyWindowResponse,
)
from ubs_booking.services.directory_service import DirectoryService

logger = structlog.get_logger(__name__)


def day_of_week(value: date) -> int:
    """Weekday index with 0 = Sunday and 6 = Saturday."""
    return (value.weekday() + 1) % 7


class AvailabilityService:
    """Service for doctor availability rules."""

    def __init__(self, db: AsyncSession, now: Callable[[], datetime] = clinic_now):
        """Initialize service with database session and clock."""
        self.db = db
        self.now = now

    # ------------------------------------------------------------------
    # Bookability
    # ------------------------------------------------------------------

    async def has_date_restrictions(self, doctor_id: UUID, ubs_id: UUID) -> bool:
        """Whether the doctor configured any specific-date rows at the unit."""
        stmt = select(
            exists().where(
                and_(
                    doctor_date_availability.c.doctor_id == doctor_id,
                    doctor_date_availability.c.ubs_id == ubs_id,
                )
            )
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def date_gate_passes(self, doctor_id: UUID, ubs_id: UUID, on: date) -> bool:
        """
        Check the specific-date allow-list.

        Without any rows for (doctor, unit) the gate is open. Once the doctor
        has at least one row, only dates marked available pass.
        """
        if not await self.has_date_restrictions(doctor_id, ubs_id):
            return True

        stmt = select(
            exists().where(
                and_(
                    doctor_date_availability.c.doctor_id == doctor_id,
                    doctor_date_availability.c.ubs_id == ubs_id,
                    doctor_date_availability.c.available_date == on,
                    doctor_date_availability.c.is_available.is_(True),
                )
            )
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def within_weekly_window(
        self,
        doctor_id: UUID,
        ubs_id: UUID,
        on: date,
        at: time,
    ) -> bool:
        """Check that ``at`` falls inside an active window for the weekday of ``on``."""
        stmt = select(
            exists().where(
                and_(
                    doctor_availability.c.doctor_id == doctor_id,
                    doctor_availability.c.ubs_id == ubs_id,
                    doctor_availability.c.day_of_week == day_of_week(on),
                    doctor_availability.c.start_time <= at,
                    doctor_availability.c.end_time >= at,
                    doctor_availability.c.is_active.is_(True),
                )
            )
        )
        result = await self.db.execute(stmt)
        return bool(result.scalar())

    async def is_bookable(self, doctor_id: UUID, ubs_id: UUID, on: date, at: time) -> bool:
        """Both the date gate and the weekly window must pass."""
        if not await self.date_gate_passes(doctor_id, ubs_id, on):
            return False
        return await self.within_weekly_window(doctor_id, ubs_id, on, at)

    # ------------------------------------------------------------------
    # Weekly windows
    # ------------------------------------------------------------------

    async def set_weekly_window(
        self,
        doctor_id: UUID,
        ubs_id: UUID,
        day: int,
        start: time,
        end: time,
    ) -> WeeklyWindowResponse:
        """
        Create or replace the window for (doctor, unit, day) and reactivate it.

        Raises:
            ValidationException: If the day is out of range or start >= end
            NotFoundException: If the unit does not exist
        """
        if not 0 <= day <= 6:
            raise ValidationException("Day of week must be between 0 (Sunday) and 6 (Saturday)")
        if start >= end:
            raise ValidationException("Window start must be before its end")

        await DirectoryService(self.db).get_unit(ubs_id)

        stmt = dialect_insert(self.db, doctor_availability).values(
            doctor_id=doctor_id,
            ubs_id=ubs_id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            is_active=True,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                doctor_availability.c.doctor_id,
                doctor_availability.c.ubs_id,
                doctor_availability.c.day_of_week,
            ],
            set_={
                "start_time": stmt.excluded.start_time,
                "end_time": stmt.excluded.end_time,
                "is_active": true(),
                "updated_at": func.now(),
            },
        ).returning(doctor_availability)

        async with transaction_scope(self.db):
            result = await self.db.execute(stmt)
            row = result.mappings().one()

        logger.info(
            "weekly_window_set",
            doctor_id=str(doctor_id),
            ubs_id=str(ubs_id),
            day_of_week=day,
            start_time=start.isoformat(),
            end_time=end.isoformat(),
        )
        return WeeklyWindowResponse.model_validate(dict(row))

    async def remove_weekly_window(self, doctor_id: UUID, ubs_id: UUID, day: int) -> None:
        """
        Deactivate the window for (doctor, unit, day).

        Raises:
            NotFoundException: If there is no active window to remove
        """
        stmt = (
            update(doctor_availability)
            .where(
                and_(
                    doctor_availability.c.doctor_id == doctor_id,
                    doctor_availability.c.ubs_id == ubs_id,
                    doctor_availability.c.day_of_week == day,
                    doctor_availability.c.is_active.is_(True),
                )
            )
            .values(is_active=False, updated_at=func.now())
            .returning(doctor_availability.c.id)
        )

        async with transaction_scope(self.db):
            result = await self.db.execute(stmt)
            if result.first() is None:
                raise NotFoundException("No active availability for this day")

        logger.info(
            "weekly_window_removed",
            doctor_id=str(doctor_id),
            ubs_id=str(ubs_id),
            day_of_week=day,
        )

    async def list_weekly_windows(self, doctor_id: UUID, ubs_id: UUID) -> list[WeeklyWindowResponse]:
        """List active windows of a doctor at a unit, ordered by weekday."""
        stmt = (
            select(doctor_availability)
            .where(
                and_(
                    doctor_availability.c.doctor_id == doctor_id,
                    doctor_availability.c.ubs_id == ubs_id,
                    doctor_availability.c.is_active.is_(True),
                )
            )
            .order_by(doctor_availability.c.day_of_week)
        )
        result = await self.db.execute(stmt)
        return [WeeklyWindowResponse.model_validate(dict(row)) for row in result.mappings().all()]

    # ------------------------------------------------------------------
    # Specific dates
    # ------------------------------------------------------------------

    async def toggle_date(
        self,
        doctor_id: UUID,
        ubs_id: UUID,
        on: date,
    ) -> DateAvailabilityResponse:
        """
        Mark a date available, or flip the flag if the date is already listed.

        Raises:
            ValidationException: If the date is in the past
            NotFoundException: If the unit does not exist
        """
        if on < self.now().date():
            raise ValidationException("Cannot set availability for a past date")

        await DirectoryService(self.db).get_unit(ubs_id)

        stmt = dialect_insert(self.db, doctor_date_availability).values(
            doctor_id=doctor_id,
            ubs_id=ubs_id,
            available_date=on,
            is_available=True,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                doctor_date_availability.c.doctor_id,
                doctor_date_availability.c.ubs_id,
                doctor_date_availability.c.available_date,
            ],
            set_={
                "is_available": not_(doctor_date_availability.c.is_available),
                "updated_at": func.now(),
            },
        ).returning(doctor_date_availability)

        async with transaction_scope(self.db):
            result = await self.db.execute(stmt)
            row = result.mappings().one()

        logger.info(
            "date_availability_toggled",
            doctor_id=str(doctor_id),
            ubs_id=str(ubs_id),
            available_date=on.isoformat(),
            is_available=row["is_available"],
        )
        return DateAvailabilityResponse.model_validate(dict(row))

    async def remove_date(self, doctor_id: UUID, ubs_id: UUID, on: date) -> None:
        """
        Delete a specific-date row.

        Removing the doctor's last row lifts the date restriction entirely.

        Raises:
            NotFoundException: If the date is not listed
        """
        stmt = (
            delete(doctor_date_availability)
            .where(
                and_(
                    doctor_date_availability.c.doctor_id == doctor_id,
                    doctor_date_availability.c.ubs_id == ubs_id,
                    doctor_date_availability.c.available_date == on,
                )
            )
            .returning(doctor_date_availability.c.id)
        )

        async with transaction_scope(self.db):
            result = await self.db.execute(stmt)
            if result.first() is None:
                raise NotFoundException("Date availability not found")

        logger.info(
            "date_availability_removed",
            doctor_id=str(doctor_id),
            ubs_id=str(ubs_id),
            available_date=on.isoformat(),
        )

    async def list_dates(self, doctor_id: UUID, ubs_id: UUID) -> list[DateAvailabilityResponse]:
        """Upcoming dates the doctor marked available at a unit."""
        stmt = (
            select(doctor_date_availability)
            .where(
                and_(
                    doctor_date_availability.c.doctor_id == doctor_id,
                    doctor_date_availability.c.ubs_id == ubs_id,
                    doctor_date_availability.c.is_available.is_(True),
                    doctor_date_availability.c.available_date >= self.now().date(),
                )
            )
            .order_by(doctor_date_availability.c.available_date)
        )
        result = await self.db.execute(stmt)
        return [
            DateAvailabilityResponse.model_validate(dict(row)) for row in result.mappings().all()
        ]

    async def list_dates_for_unit(self, ubs_id: UUID) -> list[UnitAvailableDate]:
        """Upcoming available dates of every doctor at a unit."""
        stmt = (
            select(
                doctor_date_availability.c.available_date,
                doctors.c.id.label("doctor_id"),
                doctors.c.name.label("doctor_name"),
                doctors.c.specialty,
            )
            .join(doctors, doctors.c.id == doctor_date_availability.c.doctor_id)
            .where(
                and_(
                    doctor_date_availability.c.ubs_id == ubs_id,
                    doctor_date_availability.c.is_available.is_(True),
                    doctor_date_availability.c.available_date >= self.now().date(),
                )
            )
            .order_by(doctor_date_availability.c.available_date, doctors.c.name)
        )
        result = await self.db.execute(stmt)
        return [UnitAvailableDate.model_validate(dict(row)) for row in result.mappings().all()]
