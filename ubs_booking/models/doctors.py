"""Doctor model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Table, Text, Uuid, func

from ubs_booking.models.metadata import metadata

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Professional registration (CRM)
    Column("crm", String(20), unique=True, nullable=False, index=True),
    Column("name", Text, nullable=False),
    Column("email", String(255), unique=True, nullable=False),
    Column("phone", String(20)),
    Column("specialty", String(200), index=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
