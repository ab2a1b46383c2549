"""Doctor reference table using SQLAlchemy Core.

Doctor records are owned by the staff directory; this service only reads
the columns it needs to work out availability.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    MetaData,
    Table,
    Text,
    Time,
    Uuid,
    func,
    true,
)

metadata = MetaData()

doctors = Table(
    "doctors",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("full_name", Text, nullable=False),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    # Availability: weekday names, NULL means every day the clinic is open
    Column("available_days", JSON, nullable=True),
    Column("available_start_time", Time, nullable=True),
    Column("available_end_time", Time, nullable=True),
    # Metadata
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
