"""Global queue counter: a single row used as a sequence generator."""

from sqlalchemy import CheckConstraint, Column, Integer, Table

from ubs_booking.models.metadata import metadata

COUNTER_ROW_ID = 1

queue_counter = Table(
    "queue_counter",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("current_count", Integer, nullable=False, default=0),
    CheckConstraint("current_count >= 0", name="current_count_non_negative"),
)
