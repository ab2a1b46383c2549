"""Appointments table model using SQLAlchemy Core."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
    false,
    func,
)

# Metadata for all tables
metadata = MetaData()

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("appointment_code", Text, nullable=False, unique=True),
    Column("clinic_id", Text, nullable=False),
    # Ownership / references
    Column("patient_id", Uuid, nullable=False),
    Column("doctor_id", Uuid, nullable=True),
    Column("room", Text, nullable=True),
    # Scheduling (local clinic time)
    Column("appointment_date", Date, nullable=False),
    Column("appointment_time", Time, nullable=True),
    Column("duration_minutes", Integer, nullable=False, server_default="30"),
    # Walk-in queue
    Column("is_walk_in", Boolean, nullable=False, server_default=false()),
    Column("queue_number", Integer, nullable=True),
    Column("estimated_wait_time", Integer, nullable=True),
    # Status management
    Column("status", Text, nullable=False, server_default="scheduled"),
    Column("origin", Text, nullable=False, server_default="staff"),
    # Details
    Column("reason", Text, nullable=True),
    Column("notes", Text, nullable=True),
    # Audit fields
    Column("created_by", Uuid, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("cancelled_at", DateTime(timezone=True), nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('pending', 'scheduled', 'confirmed', 'rescheduled', "
        "'no-show', 'completed', 'cancelled')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "origin IN ('staff', 'walk-in', 'patient-portal')",
        name="appointments_origin_check",
    ),
    CheckConstraint(
        "duration_minutes BETWEEN 15 AND 240",
        name="appointments_duration_check",
    ),
    CheckConstraint(
        "queue_number IS NULL OR queue_number > 0",
        name="appointments_queue_number_check",
    ),
    CheckConstraint(
        "(is_walk_in AND queue_number IS NOT NULL) OR (NOT is_walk_in AND queue_number IS NULL)",
        name="appointments_walk_in_queue_check",
    ),
    # NULL queue numbers never collide, so only walk-ins are constrained
    UniqueConstraint(
        "clinic_id",
        "appointment_date",
        "queue_number",
        name="uq_appointments_daily_queue_number",
    ),
    Index("idx_appointments_doctor_date", "doctor_id", "appointment_date"),
    Index("idx_appointments_date_walk_in", "appointment_date", "is_walk_in"),
    Index("idx_appointments_patient_status", "patient_id", "status"),
)
