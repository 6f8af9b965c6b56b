"""Health unit (UBS) and doctor-unit link tables."""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    true,
)

from ubs_booking.models.metadata import metadata

ubs = Table(
    "ubs",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", String(255), nullable=False, index=True),
    Column("address", Text),
    Column("district", String(100), index=True),
    Column("city", String(100)),
    Column("state", String(2)),
    Column("latitude", Numeric(10, 8)),
    Column("longitude", Numeric(11, 8)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

doctor_ubs = Table(
    "doctor_ubs",
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
    Column("is_active", Boolean, nullable=False, server_default=true()),
    # Link age decides which doctor serves a unit when none is requested
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    UniqueConstraint("doctor_id", "ubs_id", name="uq_doctor_ubs_doctor_ubs"),
)

Index("idx_doctor_ubs_ubs_active", doctor_ubs.c.ubs_id, doctor_ubs.c.is_active)
