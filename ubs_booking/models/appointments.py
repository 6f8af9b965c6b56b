"""Appointments table model using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
    Uuid,
    func,
    text,
)

from ubs_booking.models.metadata import metadata

ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"

appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column(
        "patient_id",
        Uuid,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column(
        "doctor_id",
        Uuid,
        ForeignKey("doctors.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    ),
    Column(
        "ubs_id",
        Uuid,
        ForeignKey("ubs.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    # Appointment details
    Column("appointment_type", String(20), nullable=False, server_default="exam"),
    Column("specialty", Text, nullable=False),
    Column("appointment_date", Date, nullable=False),
    Column("appointment_time", Time, nullable=False),
    Column("queue_position", Integer, nullable=False),
    # Status management
    Column("status", String(20), nullable=False, server_default="pending"),
    # Audit fields
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
        name="status",
    ),
    CheckConstraint(
        "appointment_type IN ('exam', 'consultation')",
        name="appointment_type",
    ),
    CheckConstraint("queue_position > 0", name="queue_position_positive"),
)

# At most one non-cancelled appointment per slot
Index(
    ACTIVE_SLOT_INDEX,
    appointments.c.doctor_id,
    appointments.c.ubs_id,
    appointments.c.appointment_date,
    appointments.c.appointment_time,
    unique=True,
    postgresql_where=text("status <> 'cancelled'"),
    sqlite_where=text("status <> 'cancelled'"),
)
Index("idx_appointments_queue_position", appointments.c.queue_position)
Index(
    "idx_appointments_doctor_date",
    appointments.c.doctor_id,
    appointments.c.appointment_date,
)
