"""Patient model definition using SQLAlchemy Core."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Table, Text, Uuid, func

from ubs_booking.models.metadata import metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column("name", Text, nullable=False),
    Column("cpf", String(14), unique=True, nullable=False),
    Column("email", String(255), unique=True, nullable=False),
    Column("phone", String(20)),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
