"""Persistence for appointments.

Every write that could race with another request is made safe here:
status changes are conditional on the status the caller last saw, slot
bookings re-check overlaps while holding a per-doctor-per-day lock, and
queue numbers come from the atomic counter in ``QueueSequencer``.
"""

from datetime import UTC, date, datetime, time
from typing import Any
from uuid import UUID, uuid4

import structlog
from sqlalchemy import and_, func, insert, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.core.exceptions import (
    ConflictException,
    NotFoundException,
    SlotUnavailableException,
)
from frontdesk.models.appointments import appointments
from frontdesk.models.doctors import doctors
from frontdesk.schemas.appointments import (
    AppointmentFilters,
    AppointmentResponse,
    AppointmentStatus,
)
from frontdesk.services.queue_sequencer import QueueSequencer
from frontdesk.services.slot_calculator import conflicts_with

logger = structlog.get_logger()


def generate_appointment_code(day: date) -> str:
    """Build a human-readable appointment code such as ``APT-20240601-1A2B3C4D``."""
    return f"APT-{day:%Y%m%d}-{uuid4().hex[:8].upper()}"


class AppointmentStore:
    """SQL-backed appointment store scoped to one clinic."""

    def __init__(self, db: AsyncSession, sequencer: QueueSequencer, clinic_id: str):
        """Initialize store with database session, queue sequencer and clinic scope."""
        self.db = db
        self.sequencer = sequencer
        self.clinic_id = clinic_id

    @staticmethod
    def _to_response(row: Any) -> AppointmentResponse:
        return AppointmentResponse.model_validate(dict(row._mapping))

    async def find_by_id(self, appointment_id: UUID) -> AppointmentResponse | None:
        """Get appointment by ID, or None if it does not exist."""
        stmt = select(appointments).where(
            and_(
                appointments.c.id == appointment_id,
                appointments.c.clinic_id == self.clinic_id,
            )
        )
        result = await self.db.execute(stmt)
        row = result.fetchone()
        return self._to_response(row) if row else None

    async def find_by_doctor_and_date(self, doctor_id: UUID, day: date) -> list[AppointmentResponse]:
        """List every appointment for a doctor on a day, cancelled ones included."""
        stmt = (
            select(appointments)
            .where(
                and_(
                    appointments.c.clinic_id == self.clinic_id,
                    appointments.c.doctor_id == doctor_id,
                    appointments.c.appointment_date == day,
                )
            )
            .order_by(appointments.c.appointment_time)
        )
        result = await self.db.execute(stmt)
        return [self._to_response(row) for row in result.fetchall()]

    async def find_by_date_and_walk_in(self, day: date) -> list[AppointmentResponse]:
        """List the day's walk-ins in queue order, regardless of status."""
        stmt = (
            select(appointments)
            .where(
                and_(
                    appointments.c.clinic_id == self.clinic_id,
                    appointments.c.appointment_date == day,
                    appointments.c.is_walk_in.is_(True),
                )
            )
            .order_by(appointments.c.queue_number)
        )
        result = await self.db.execute(stmt)
        return [self._to_response(row) for row in result.fetchall()]

    async def find_by_patient_and_date(self, patient_id: UUID, day: date) -> list[AppointmentResponse]:
        """List every appointment a patient has on a day."""
        stmt = (
            select(appointments)
            .where(
                and_(
                    appointments.c.clinic_id == self.clinic_id,
                    appointments.c.patient_id == patient_id,
                    appointments.c.appointment_date == day,
                )
            )
            .order_by(appointments.c.appointment_time)
        )
        result = await self.db.execute(stmt)
        return [self._to_response(row) for row in result.fetchall()]

    async def find(self, filters: AppointmentFilters) -> tuple[list[AppointmentResponse], int]:
        """
        List appointments matching ``filters``, one page at a time.

        Args:
            filters: Filter and pagination parameters

        Returns:
            The requested page and the total number of matches
        """
        conditions = [appointments.c.clinic_id == self.clinic_id]

        if filters.appointment_date:
            conditions.append(appointments.c.appointment_date == filters.appointment_date)

        if filters.doctor_id:
            conditions.append(appointments.c.doctor_id == filters.doctor_id)

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.statuses:
            conditions.append(appointments.c.status.in_([s.value for s in filters.statuses]))

        if filters.is_walk_in is not None:
            conditions.append(appointments.c.is_walk_in.is_(filters.is_walk_in))

        if filters.room:
            conditions.append(appointments.c.room == filters.room)

        count_stmt = select(func.count()).select_from(appointments).where(and_(*conditions))
        total = (await self.db.execute(count_stmt)).scalar() or 0

        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(appointments)
            .where(and_(*conditions))
            .order_by(
                appointments.c.appointment_date,
                appointments.c.appointment_time,
                appointments.c.queue_number,
                appointments.c.created_at,
            )
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return [self._to_response(row) for row in result.fetchall()], total

    async def reserve_next_queue_number(self, day: date) -> int:
        """
        Atomically reserve the next walk-in queue number for ``day``.

        The highest persisted number only seeds a missing counter; it never
        decides the number on its own.
        """
        stmt = select(func.max(appointments.c.queue_number)).where(
            and_(
                appointments.c.clinic_id == self.clinic_id,
                appointments.c.appointment_date == day,
                appointments.c.is_walk_in.is_(True),
            )
        )
        floor = (await self.db.execute(stmt)).scalar() or 0
        return self.sequencer.reserve(day, floor=floor)

    async def _lock_doctor_day(self, doctor_id: UUID, day: date) -> None:
        """
        Serialize bookings for one doctor and day until the transaction ends.

        PostgreSQL takes an advisory lock keyed on clinic, doctor and day.
        Other backends get a no-op write on the doctor row instead; on SQLite
        that acquires the database-wide write lock, so a second booking waits
        here until the first commits or rolls back.
        """
        if self.db.get_bind().dialect.name == "postgresql":
            await self.db.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                {"key": f"{self.clinic_id}:{doctor_id}:{day.isoformat()}"},
            )
            return

        await self.db.execute(
            update(doctors).where(doctors.c.id == doctor_id).values(id=doctors.c.id)
        )

    async def _ensure_slot_free(
        self,
        doctor_id: UUID,
        day: date,
        start: time,
        duration_minutes: int,
        exclude_id: UUID | None = None,
    ) -> None:
        await self._lock_doctor_day(doctor_id, day)
        existing = await self.find_by_doctor_and_date(doctor_id, day)
        if conflicts_with(existing, start, duration_minutes, exclude_id=exclude_id):
            await self.db.rollback()
            raise SlotUnavailableException(
                "Doctor already has an appointment overlapping this time",
                doctor_id=doctor_id,
                date=day,
                time=start.strftime("%H:%M"),
                reason="overlap",
            )

    async def insert(self, values: dict[str, Any]) -> AppointmentResponse:
        """
        Persist a new appointment, assigning its id and code.

        Appointments with a doctor and a time are checked for overlaps under
        the doctor-day lock before the row is written.

        Raises:
            SlotUnavailableException: If the slot was taken
            ConflictException: If a uniqueness guard rejected the row
        """
        now = datetime.now(UTC)
        row_values = {
            **values,
            "id": uuid4(),
            "appointment_code": generate_appointment_code(values["appointment_date"]),
            "clinic_id": self.clinic_id,
            "created_at": now,
            "updated_at": now,
        }

        if row_values.get("doctor_id") and row_values.get("appointment_time"):
            await self._ensure_slot_free(
                row_values["doctor_id"],
                row_values["appointment_date"],
                row_values["appointment_time"],
                row_values["duration_minutes"],
            )

        stmt = insert(appointments).values(**row_values).returning(appointments)
        try:
            result = await self.db.execute(stmt)
            row = result.fetchone()
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("appointment_insert_rejected", error=str(e.orig))
            raise ConflictException("Appointment conflicts with an existing record") from e

        return self._to_response(row)

    async def _conditional_update(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        requested_status: AppointmentStatus,
        values: dict[str, Any],
    ) -> AppointmentResponse:
        stmt = (
            update(appointments)
            .where(
                and_(
                    appointments.c.id == appointment_id,
                    appointments.c.clinic_id == self.clinic_id,
                    appointments.c.status == AppointmentStatus(expected_status).value,
                )
            )
            .values(**values, updated_at=datetime.now(UTC))
            .returning(appointments)
        )
        try:
            result = await self.db.execute(stmt)
            row = result.fetchone()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictException("Appointment conflicts with an existing record") from e

        if row is None:
            await self.db.rollback()
            current = await self.find_by_id(appointment_id)
            if current is None:
                raise NotFoundException(
                    "Appointment not found", resource="appointment", resource_id=appointment_id
                )
            raise ConflictException(
                f"Appointment status changed to {current.status.value} before this update",
                current_status=current.status.value,
                requested_status=AppointmentStatus(requested_status).value,
            )

        await self.db.commit()
        return self._to_response(row)

    async def conditional_update_status(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        new_status: AppointmentStatus,
        extra_values: dict[str, Any] | None = None,
    ) -> AppointmentResponse:
        """
        Change status only if the stored status still equals ``expected_status``.

        Raises:
            ConflictException: If another request changed the status first
            NotFoundException: If the appointment does not exist
        """
        values = {"status": AppointmentStatus(new_status).value, **(extra_values or {})}
        return await self._conditional_update(appointment_id, expected_status, new_status, values)

    async def conditional_update_schedule(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        values: dict[str, Any],
    ) -> AppointmentResponse:
        """
        Move an appointment to a new slot and mark it rescheduled.

        The new slot is checked for overlaps, ignoring the appointment itself.
        """
        if values.get("doctor_id") and values.get("appointment_time"):
            await self._ensure_slot_free(
                values["doctor_id"],
                values["appointment_date"],
                values["appointment_time"],
                values["duration_minutes"],
                exclude_id=appointment_id,
            )

        return await self._conditional_update(
            appointment_id,
            expected_status,
            AppointmentStatus.RESCHEDULED,
            {**values, "status": AppointmentStatus.RESCHEDULED.value},
        )
