"""Appointment service for business logic."""

from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog

from frontdesk.config import Settings, settings
from frontdesk.core.exceptions import (
    ConflictException,
    NotFoundException,
    SlotUnavailableException,
    ValidationException,
)
from frontdesk.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentOrigin,
    AppointmentResponse,
    AppointmentStatus,
)
from frontdesk.services.appointment_store import AppointmentStore
from frontdesk.services.cancellation_policy import ensure_patient_can_cancel
from frontdesk.services.directory_service import DirectoryService
from frontdesk.services.notifier import ConfirmationNotifier, LoggingNotifier
from frontdesk.services.slot_calculator import (
    available_slots,
    booking_window_violation,
    conflicts_with,
    working_hours_for,
    within_working_hours,
)
from frontdesk.services.state_machine import (
    RESCHEDULABLE_STATUSES,
    ensure_transition,
    initial_state_for,
)

logger = structlog.get_logger()

# Statuses shown in the walk-in line
QUEUE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED})

# Bookings that keep a patient busy for their time slot
PATIENT_BUSY_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.RESCHEDULED,
    }
)


def clinic_clock(timezone: str) -> Callable[[], datetime]:
    """Return a clock yielding naive clinic-local wall time."""
    zone = ZoneInfo(timezone)

    def now() -> datetime:
        return datetime.now(zone).replace(tzinfo=None)

    return now


class AppointmentService:
    """Service for managing the appointment lifecycle and walk-in queue."""

    def __init__(
        self,
        store: AppointmentStore,
        directory: DirectoryService,
        notifier: ConfirmationNotifier | None = None,
        config: Settings = settings,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize service with its collaborators."""
        self.store = store
        self.directory = directory
        self.notifier = notifier or LoggingNotifier()
        self.config = config
        self.clock = clock or clinic_clock(config.clinic_timezone)

    # Validation helpers

    def _resolve_duration(self, duration_minutes: int | None) -> int:
        duration = self.config.default_appointment_duration if duration_minutes is None else duration_minutes
        low, high = self.config.min_appointment_duration, self.config.max_appointment_duration
        if not low <= duration <= high:
            raise ValidationException(
                f"Duration must be between {low} and {high} minutes",
                field="duration_minutes",
            )
        return duration

    @staticmethod
    def _require(value: Any, field: str) -> None:
        if value is None:
            raise ValidationException(f"{field} is required", field=field)

    def _ensure_not_past(self, doctor_id: UUID | None, day: date, start: time) -> None:
        earliest = self.clock() + timedelta(minutes=self.config.min_lead_minutes)
        if datetime.combine(day, start) < earliest:
            raise SlotUnavailableException(
                "Appointments cannot be booked in the past",
                doctor_id=doctor_id,
                date=day,
                time=start.strftime("%H:%M"),
                reason="past",
            )

    def _ensure_within_hours(
        self,
        doctor: dict | None,
        day: date,
        start: time,
        duration: int,
    ) -> None:
        hours = working_hours_for(day, self.config.business_hours, doctor)
        if not within_working_hours(hours, start, duration):
            raise SlotUnavailableException(
                "Requested time is outside working hours",
                doctor_id=doctor["id"] if doctor else None,
                date=day,
                time=start.strftime("%H:%M"),
                reason="outside_working_hours",
            )

    async def _ensure_patient_free(
        self,
        patient_id: UUID,
        day: date,
        start: time,
        duration: int,
    ) -> None:
        existing = await self.store.find_by_patient_and_date(patient_id, day)
        open_bookings = [a for a in existing if a.status in PATIENT_BUSY_STATUSES]
        if conflicts_with(open_bookings, start, duration):
            raise SlotUnavailableException(
                "You already have an appointment at this time",
                doctor_id=None,
                date=day,
                time=start.strftime("%H:%M"),
                reason="patient_overlap",
            )

    # Creation

    async def _create(
        self,
        origin: AppointmentOrigin,
        *,
        patient_id: UUID,
        appointment_date: date,
        duration_minutes: int,
        doctor_id: UUID | None = None,
        appointment_time: time | None = None,
        room: str | None = None,
        reason: str | None = None,
        notes: str | None = None,
        created_by: UUID | None = None,
    ) -> AppointmentResponse:
        """Build and persist an appointment; ``origin`` selects status and queue behaviour."""
        state = initial_state_for(origin)

        values: dict[str, Any] = {
            "patient_id": patient_id,
            "doctor_id": doctor_id,
            "room": room,
            "appointment_date": appointment_date,
            "appointment_time": appointment_time,
            "duration_minutes": duration_minutes,
            "is_walk_in": state.is_walk_in,
            "queue_number": None,
            "estimated_wait_time": None,
            "status": state.status.value,
            "origin": origin.value,
            "reason": reason,
            "notes": notes,
            "created_by": created_by,
        }

        if state.is_walk_in:
            values["queue_number"] = await self.store.reserve_next_queue_number(appointment_date)
            values["estimated_wait_time"] = self.config.walk_in_estimated_wait_minutes

        appointment = await self.store.insert(values)

        logger.info(
            "appointment_created",
            appointment_id=str(appointment.id),
            appointment_code=appointment.appointment_code,
            origin=origin.value,
            status=appointment.status.value,
            queue_number=appointment.queue_number,
        )
        return appointment

    async def create_scheduled_appointment(
        self,
        patient_id: UUID,
        doctor_id: UUID,
        appointment_date: date,
        appointment_time: time,
        duration_minutes: int | None = None,
        reason: str | None = None,
        notes: str | None = None,
        room: str | None = None,
        created_by: UUID | None = None,
    ) -> AppointmentResponse:
        """
        Book a regular appointment on behalf of a patient (staff path).

        Args:
            patient_id: Patient being booked
            doctor_id: Doctor whose slot is taken
            appointment_date: Calendar day
            appointment_time: Local start time
            duration_minutes: Length, defaults to the configured duration
            reason: Visit reason
            notes: Staff notes
            room: Room assignment
            created_by: Staff member creating the booking

        Returns:
            Created appointment in ``scheduled`` status

        Raises:
            ValidationException: If required input is missing or malformed
            NotFoundException: If the patient or doctor does not exist
            SlotUnavailableException: If the slot is in the past, outside hours or taken
        """
        self._require(patient_id, "patient_id")
        self._require(doctor_id, "doctor_id")
        self._require(appointment_date, "appointment_date")
        self._require(appointment_time, "appointment_time")
        duration = self._resolve_duration(duration_minutes)
        self._ensure_not_past(doctor_id, appointment_date, appointment_time)

        await self.directory.get_patient(patient_id)
        doctor = await self.directory.get_doctor(doctor_id)
        self._ensure_within_hours(doctor, appointment_date, appointment_time, duration)

        return await self._create(
            AppointmentOrigin.STAFF,
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            duration_minutes=duration,
            room=room,
            reason=reason,
            notes=notes,
            created_by=created_by,
        )

    async def create_walk_in(
        self,
        patient_id: UUID,
        appointment_date: date | None = None,
        reason: str | None = None,
        doctor_id: UUID | None = None,
        room: str | None = None,
        notes: str | None = None,
        created_by: UUID | None = None,
    ) -> AppointmentResponse:
        """
        Register a walk-in patient and give them the next queue number.

        Walk-ins are admitted for the current clinic day only. The doctor is
        optional; triage may assign one later.
        """
        self._require(patient_id, "patient_id")
        today = self.clock().date()
        day = appointment_date or today
        if day != today:
            raise ValidationException(
                "Walk-ins can only be registered for today",
                field="appointment_date",
            )

        await self.directory.get_patient(patient_id)
        if doctor_id is not None:
            await self.directory.get_doctor(doctor_id)

        appointment = await self._create(
            AppointmentOrigin.WALK_IN,
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=day,
            duration_minutes=self.config.default_appointment_duration,
            room=room,
            reason=reason,
            notes=notes,
            created_by=created_by,
        )
        logger.info(
            "walk_in_registered",
            appointment_id=str(appointment.id),
            queue_number=appointment.queue_number,
            day=day.isoformat(),
        )
        return appointment

    async def create_patient_requested_appointment(
        self,
        patient_id: UUID,
        doctor_id: UUID | None,
        appointment_date: date,
        appointment_time: time,
        reason: str | None = None,
    ) -> AppointmentResponse:
        """
        Record a self-service booking from the patient portal.

        The appointment starts ``pending`` until staff confirm it, and must
        fall inside the advance booking window.
        """
        self._require(patient_id, "patient_id")
        self._require(appointment_date, "appointment_date")
        self._require(appointment_time, "appointment_time")
        duration = self._resolve_duration(None)

        violation = booking_window_violation(
            appointment_date,
            appointment_time,
            self.clock(),
            self.config.min_advance_booking_hours,
            self.config.max_advance_booking_days,
        )
        if violation == "too_soon":
            raise SlotUnavailableException(
                f"Online bookings must be made at least {self.config.min_advance_booking_hours} hours ahead",
                doctor_id=doctor_id,
                date=appointment_date,
                time=appointment_time.strftime("%H:%M"),
                reason=violation,
            )
        if violation == "too_far":
            raise SlotUnavailableException(
                f"Online bookings can be made at most {self.config.max_advance_booking_days} days ahead",
                doctor_id=doctor_id,
                date=appointment_date,
                time=appointment_time.strftime("%H:%M"),
                reason=violation,
            )

        await self.directory.get_patient(patient_id)
        doctor = await self.directory.get_doctor(doctor_id) if doctor_id is not None else None
        self._ensure_within_hours(doctor, appointment_date, appointment_time, duration)
        await self._ensure_patient_free(patient_id, appointment_date, appointment_time, duration)

        return await self._create(
            AppointmentOrigin.PATIENT_PORTAL,
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            duration_minutes=duration,
            reason=reason or "Patient portal booking",
            created_by=patient_id,
        )

    # Queries

    async def get_appointment(self, appointment_id: UUID) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
        """
        appointment = await self.store.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundException(
                "Appointment not found", resource="appointment", resource_id=appointment_id
            )
        return appointment

    async def list_available_slots(
        self,
        doctor_id: UUID,
        day: date,
        patient_facing: bool = False,
    ) -> list[time]:
        """
        List free slot starts for a doctor on a day.

        Args:
            doctor_id: Doctor to list
            day: Calendar day
            patient_facing: Apply the portal's advance booking window
                instead of the staff lead time

        Returns:
            Ordered slot starts, empty when the doctor is not working
        """
        doctor = await self.directory.get_doctor(doctor_id)
        now = self.clock()

        if patient_facing:
            if day > now.date() + timedelta(days=self.config.max_advance_booking_days):
                return []
            not_before = now + timedelta(hours=self.config.min_advance_booking_hours)
        else:
            not_before = now + timedelta(minutes=self.config.min_lead_minutes)

        hours = working_hours_for(day, self.config.business_hours, doctor)
        if hours is None:
            return []

        existing = await self.store.find_by_doctor_and_date(doctor_id, day)
        return available_slots(
            day,
            hours,
            existing,
            duration_minutes=self.config.default_appointment_duration,
            not_before=not_before,
        )

    async def list_appointments(self, filters: AppointmentFilters) -> AppointmentListResponse:
        """
        List appointments with filtering and pagination.

        Args:
            filters: Filter and pagination parameters

        Returns:
            Paginated list of appointments
        """
        items, total = await self.store.find(filters)
        return AppointmentListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=items,
        )

    async def list_walk_in_queue(self, day: date) -> list[AppointmentResponse]:
        """List the day's active walk-ins ordered by queue number."""
        walk_ins = await self.store.find_by_date_and_walk_in(day)
        queue = [a for a in walk_ins if a.status in QUEUE_STATUSES]
        return sorted(queue, key=lambda a: a.queue_number or 0)

    # Transitions

    async def _notify_confirmed(self, appointment: AppointmentResponse) -> None:
        try:
            await self.notifier.appointment_confirmed(appointment)
        except Exception as e:
            # Log error but don't fail the request
            logger.warning(
                "failed_to_signal_confirmation",
                appointment_id=str(appointment.id),
                error=str(e),
            )

    async def transition_status(
        self,
        appointment_id: UUID,
        requested_status: AppointmentStatus,
    ) -> AppointmentResponse:
        """
        Apply a staff-requested status change.

        The transition is validated against the persisted status and written
        conditionally on it, so concurrent changes produce one winner.

        Raises:
            NotFoundException: If appointment not found
            ConflictException: If the transition is not allowed or lost a race
        """
        requested_status = AppointmentStatus(requested_status)
        current = await self.get_appointment(appointment_id)

        try:
            ensure_transition(current.status, requested_status)
        except ConflictException:
            logger.info(
                "appointment_transition_rejected",
                appointment_id=str(appointment_id),
                current_status=current.status.value,
                requested_status=requested_status.value,
            )
            raise

        extra: dict[str, Any] = {}
        if requested_status == AppointmentStatus.CANCELLED:
            extra["cancelled_at"] = datetime.now(UTC)

        updated = await self.store.conditional_update_status(
            appointment_id,
            expected_status=current.status,
            new_status=requested_status,
            extra_values=extra,
        )

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=current.status.value,
            new_status=updated.status.value,
        )

        if requested_status == AppointmentStatus.CONFIRMED:
            await self._notify_confirmed(updated)

        return updated

    async def cancel_as_patient(self, appointment_id: UUID, patient_id: UUID) -> AppointmentResponse:
        """
        Cancel an appointment through the patient portal.

        Raises:
            NotFoundException: If appointment not found
            PolicyDeniedException: If the patient may not cancel it
            ConflictException: If the status changed concurrently
        """
        current = await self.get_appointment(appointment_id)
        ensure_patient_can_cancel(current, patient_id, self.clock())

        cancelled_at = datetime.now(UTC)
        note = f"Cancelled by patient on {cancelled_at.isoformat()}"
        notes = f"{current.notes}\n{note}" if current.notes else note

        updated = await self.store.conditional_update_status(
            appointment_id,
            expected_status=current.status,
            new_status=AppointmentStatus.CANCELLED,
            extra_values={"notes": notes, "cancelled_at": cancelled_at},
        )

        logger.info(
            "appointment_cancelled_by_patient",
            appointment_id=str(appointment_id),
            appointment_code=updated.appointment_code,
            patient_id=str(patient_id),
        )
        return updated

    async def reschedule_appointment(
        self,
        appointment_id: UUID,
        appointment_date: date,
        appointment_time: time,
        doctor_id: UUID | None = None,
        duration_minutes: int | None = None,
    ) -> AppointmentResponse:
        """
        Move an appointment to a new slot in place.

        The appointment keeps its id and code and becomes ``rescheduled``.
        Walk-ins cannot be rescheduled because their queue number belongs to
        the day they arrived.

        Raises:
            ValidationException: If the appointment is a walk-in or input is invalid
            ConflictException: If the current status does not allow rescheduling
            SlotUnavailableException: If the new slot is not free
        """
        self._require(appointment_date, "appointment_date")
        self._require(appointment_time, "appointment_time")
        current = await self.get_appointment(appointment_id)

        if current.is_walk_in:
            raise ValidationException("Walk-in appointments cannot be rescheduled", field="is_walk_in")

        if current.status not in RESCHEDULABLE_STATUSES:
            raise ConflictException(
                f"Cannot reschedule an appointment that is {current.status.value}",
                current_status=current.status.value,
                requested_status=AppointmentStatus.RESCHEDULED.value,
            )

        duration = self._resolve_duration(
            duration_minutes if duration_minutes is not None else current.duration_minutes
        )
        target_doctor_id = doctor_id or current.doctor_id
        self._ensure_not_past(target_doctor_id, appointment_date, appointment_time)

        doctor = await self.directory.get_doctor(target_doctor_id) if target_doctor_id else None
        self._ensure_within_hours(doctor, appointment_date, appointment_time, duration)

        updated = await self.store.conditional_update_schedule(
            appointment_id,
            expected_status=current.status,
            values={
                "doctor_id": target_doctor_id,
                "appointment_date": appointment_date,
                "appointment_time": appointment_time,
                "duration_minutes": duration,
            },
        )

        logger.info(
            "appointment_rescheduled",
            appointment_id=str(appointment_id),
            old_date=current.appointment_date.isoformat(),
            new_date=appointment_date.isoformat(),
            new_time=appointment_time.strftime("%H:%M"),
        )
        return updated
