"""Script to initialize the database, optionally with demo directory data."""

import argparse
import asyncio
from datetime import time
from uuid import uuid4

from sqlalchemy import MetaData, insert

from frontdesk.database import engine
from frontdesk.models.appointments import metadata as appointments_metadata
from frontdesk.models.doctors import doctors
from frontdesk.models.doctors import metadata as doctors_metadata
from frontdesk.models.patients import metadata as patients_metadata
from frontdesk.models.patients import patients


def combined_metadata() -> MetaData:
    """Collect every table into one metadata object."""
    metadata = MetaData()
    for source in (patients_metadata, doctors_metadata, appointments_metadata):
        for table in source.tables.values():
            table.to_metadata(metadata)
    return metadata


async def init_db(seed: bool) -> None:
    """Create all tables, and seed a demo doctor and patient if asked."""
    async with engine.begin() as conn:
        await conn.run_sync(combined_metadata().create_all)

        if seed:
            doctor_id, patient_id = uuid4(), uuid4()
            await conn.execute(
                insert(doctors).values(
                    id=doctor_id,
                    full_name="Dr. Demo Physician",
                    available_days=["monday", "tuesday", "wednesday", "thursday", "friday"],
                    available_start_time=time(9, 0),
                    available_end_time=time(17, 0),
                )
            )
            await conn.execute(insert(patients).values(id=patient_id, full_name="Demo Patient"))
            print(f"✓ Seeded doctor {doctor_id} and patient {patient_id}")

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--seed", action="store_true", help="insert a demo doctor and patient")
    args = parser.parse_args()
    asyncio.run(init_db(args.seed))
