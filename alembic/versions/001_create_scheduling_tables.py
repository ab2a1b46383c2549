"""Create patients, doctors and appointments tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    # Reference tables, owned by the clinic directory
    op.create_table(
        "patients",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "doctors",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("available_days", sa.JSON(), nullable=True),
        sa.Column("available_start_time", sa.Time(), nullable=True),
        sa.Column("available_end_time", sa.Time(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "appointments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("appointment_code", sa.Text(), nullable=False),
        sa.Column("clinic_id", sa.Text(), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("doctor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("room", sa.Text(), nullable=True),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Time(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), server_default="30", nullable=False),
        sa.Column("is_walk_in", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("queue_number", sa.Integer(), nullable=True),
        sa.Column("estimated_wait_time", sa.Integer(), nullable=True),
        sa.Column("status", sa.Text(), server_default="scheduled", nullable=False),
        sa.Column("origin", sa.Text(), server_default="staff", nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("NOW()"),
            nullable=False,
        ),
        sa.Column("cancelled_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'scheduled', 'confirmed', 'rescheduled', "
            "'no-show', 'completed', 'cancelled')",
            name="appointments_status_check",
        ),
        sa.CheckConstraint(
            "origin IN ('staff', 'walk-in', 'patient-portal')",
            name="appointments_origin_check",
        ),
        sa.CheckConstraint(
            "duration_minutes BETWEEN 15 AND 240",
            name="appointments_duration_check",
        ),
        sa.CheckConstraint(
            "queue_number IS NULL OR queue_number > 0",
            name="appointments_queue_number_check",
        ),
        sa.CheckConstraint(
            "(is_walk_in AND queue_number IS NOT NULL) OR (NOT is_walk_in AND queue_number IS NULL)",
            name="appointments_walk_in_queue_check",
        ),
        sa.ForeignKeyConstraint(
            ["patient_id"], ["patients.id"], name="fk_appointments_patient_id", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["doctor_id"], ["doctors.id"], name="fk_appointments_doctor_id", ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("appointment_code", name="uq_appointments_appointment_code"),
        sa.UniqueConstraint(
            "clinic_id",
            "appointment_date",
            "queue_number",
            name="uq_appointments_daily_queue_number",
        ),
    )

    # Create indexes
    op.create_index("idx_appointments_doctor_date", "appointments", ["doctor_id", "appointment_date"])
    op.create_index(
        "idx_appointments_date_walk_in", "appointments", ["appointment_date", "is_walk_in"]
    )
    op.create_index("idx_appointments_patient_status", "appointments", ["patient_id", "status"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_index("idx_appointments_patient_status", table_name="appointments")
    op.drop_index("idx_appointments_date_walk_in", table_name="appointments")
    op.drop_index("idx_appointments_doctor_date", table_name="appointments")

    op.drop_table("appointments")
    op.drop_table("doctors")
    op.drop_table("patients")
