"""Lookups against the patient and doctor directories."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.exceptions import NotFoundException
from frontdesk.models.doctors import doctors
from frontdesk.models.patients import patients


class DirectoryService:
    """Read-only access to patient and doctor records."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_patient(self, patient_id: UUID) -> dict:
        """
        Get an active patient.

        Raises:
            NotFoundException: If the patient does not exist or is inactive
        """
        result = await self.db.execute(select(patients).where(patients.c.id == patient_id))
        patient = result.mappings().first()

        if not patient or not patient["is_active"]:
            raise NotFoundException("Patient not found", resource="patient", resource_id=patient_id)

        return dict(patient)

    async def get_doctor(self, doctor_id: UUID) -> dict:
        """
        Get an active doctor with availability columns.

        Raises:
            NotFoundException: If the doctor does not exist or is inactive
        """
        result = await self.db.execute(select(doctors).where(doctors.c.id == doctor_id))
        doctor = result.mappings().first()

        if not doctor or not doctor["is_active"]:
            raise NotFoundException("Doctor not found", resource="doctor", resource_id=doctor_id)

        return dict(doctor)
