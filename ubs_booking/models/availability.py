"""Doctor availability tables: recurring weekly windows and specific dates."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    SmallInteger,
    Table,
    Time,
    UniqueConstraint,
    Uuid,
    func,
    true,
)

from ubs_booking.models.metadata import metadata

doctor_availability = Table(
    "doctor_availability",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "ubs_id",
        Uuid,
        ForeignKey("ubs.id", ondelete="CASCADE"),
        nullable=False,
    ),
    # 0 = Sunday ... 6 = Saturday
    Column("day_of_week", SmallInteger, nullable=False),
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint("day_of_week BETWEEN 0 AND 6", name="day_of_week_range"),
    CheckConstraint("start_time < end_time", name="window_order"),
    UniqueConstraint(
        "doctor_id",
        "ubs_id",
        "day_of_week",
        name="uq_doctor_availability_doctor_ubs_day",
    ),
)

doctor_date_availability = Table(
    "doctor_date_availability",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("doctors.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "ubs_id",
        Uuid,
        ForeignKey("ubs.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("available_date", Date, nullable=False),
    Column("is_available", Boolean, nullable=False, server_default=true()),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint(
        "doctor_id",
        "ubs_id",
        "available_date",
        name="uq_doctor_date_availability_doctor_ubs_date",
    ),
)
