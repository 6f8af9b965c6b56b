"""Initial schema: units, doctors, patients, availability, appointments, queue counter

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create all tables and seed the queue counter."""
    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("cpf", sa.String(14), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(20)),
        *_timestamps(),
    )

    op.create_table(
        "doctors",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("crm", sa.String(20), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(20)),
        sa.Column("specialty", sa.String(200)),
        *_timestamps(),
    )
    op.create_index("ix_doctors_crm", "doctors", ["crm"])
    op.create_index("ix_doctors_specialty", "doctors", ["specialty"])

    op.create_table(
        "ubs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text()),
        sa.Column("district", sa.String(100)),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(2)),
        sa.Column("latitude", sa.Numeric(10, 8)),
        sa.Column("longitude", sa.Numeric(11, 8)),
        *_timestamps(),
    )
    op.create_index("ix_ubs_name", "ubs", ["name"])
    op.create_index("ix_ubs_district", "ubs", ["district"])

    op.create_table(
        "doctor_ubs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "doctor_id",
            sa.Uuid(),
            sa.ForeignKey("doctors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ubs_id", sa.Uuid(), sa.ForeignKey("ubs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("doctor_id", "ubs_id", name="uq_doctor_ubs_doctor_ubs"),
    )
    op.create_index("idx_doctor_ubs_ubs_active", "doctor_ubs", ["ubs_id", "is_active"])

    op.create_table(
        "doctor_availability",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "doctor_id",
            sa.Uuid(),
            sa.ForeignKey("doctors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ubs_id", sa.Uuid(), sa.ForeignKey("ubs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "day_of_week BETWEEN 0 AND 6",
            name="ck_doctor_availability_day_of_week_range",
        ),
        sa.CheckConstraint("start_time < end_time", name="ck_doctor_availability_window_order"),
        sa.UniqueConstraint(
            "doctor_id",
            "ubs_id",
            "day_of_week",
            name="uq_doctor_availability_doctor_ubs_day",
        ),
    )

    op.create_table(
        "doctor_date_availability",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "doctor_id",
            sa.Uuid(),
            sa.ForeignKey("doctors.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ubs_id", sa.Uuid(), sa.ForeignKey("ubs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("available_date", sa.Date(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "doctor_id",
            "ubs_id",
            "available_date",
            name="uq_doctor_date_availability_doctor_ubs_date",
        ),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "patient_id",
            sa.Uuid(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "doctor_id",
            sa.Uuid(),
            sa.ForeignKey("doctors.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("ubs_id", sa.Uuid(), sa.ForeignKey("ubs.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("appointment_type", sa.String(20), nullable=False, server_default="exam"),
        sa.Column("specialty", sa.Text(), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Time(), nullable=False),
        sa.Column("queue_position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        *_timestamps(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
        sa.CheckConstraint(
            "appointment_type IN ('exam', 'consultation')",
            name="ck_appointments_appointment_type",
        ),
        sa.CheckConstraint("queue_position > 0", name="ck_appointments_queue_position_positive"),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_doctor_id", "appointments", ["doctor_id"])
    op.create_index("idx_appointments_queue_position", "appointments", ["queue_position"])
    op.create_index(
        "idx_appointments_doctor_date",
        "appointments",
        ["doctor_id", "appointment_date"],
    )
    # One live appointment per slot; cancelled rows free the slot
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["doctor_id", "ubs_id", "appointment_date", "appointment_time"],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )

    counter = op.create_table(
        "queue_counter",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("current_count", sa.Integer(), nullable=False),
        sa.CheckConstraint("current_count >= 0", name="ck_queue_counter_current_count_non_negative"),
    )
    op.bulk_insert(counter, [{"id": 1, "current_count": 0}])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("queue_counter")
    op.drop_index("uq_appointments_active_slot", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("doctor_date_availability")
    op.drop_table("doctor_availability")
    op.drop_index("idx_doctor_ubs_ubs_active", table_name="doctor_ubs")
    op.drop_table("doctor_ubs")
    op.drop_table("ubs")
    op.drop_table("doctors")
    op.drop_table("patients")
