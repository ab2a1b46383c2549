"""Rules for patients cancelling their own appointments."""

from datetime import date, datetime, time

from frontdesk.core.exceptions import PolicyDeniedException
from frontdesk.schemas.appointments import AppointmentResponse, AppointmentStatus

# Statuses a patient can never cancel out of, regardless of timing
NON_CANCELLABLE_STATUSES = frozenset(
    {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }
)


def scheduled_at(appointment_date: date, appointment_time: time | None) -> datetime:
    """Combine date and time of day, using start of day when no time is set."""
    return datetime.combine(appointment_date, appointment_time or time.min)


def can_patient_cancel(appointment: AppointmentResponse, now: datetime) -> bool:
    """Check whether the patient may still cancel ``appointment`` at ``now``."""
    if appointment.status in NON_CANCELLABLE_STATUSES:
        return False
    return scheduled_at(appointment.appointment_date, appointment.appointment_time) > now


def ensure_patient_can_cancel(
    appointment: AppointmentResponse,
    patient_id: object,
    now: datetime,
) -> None:
    """
    Validate a patient self-cancellation.

    Args:
        appointment: Appointment as currently persisted
        patient_id: Patient asking for the cancellation
        now: Current clinic-local time

    Raises:
        PolicyDeniedException: If the patient may not cancel
    """
    if str(appointment.patient_id) != str(patient_id):
        raise PolicyDeniedException(
            "You can only cancel your own appointments",
            reason="not_owner",
        )

    if appointment.status in NON_CANCELLABLE_STATUSES:
        raise PolicyDeniedException(
            f"Cannot cancel an appointment that is already {appointment.status.value}",
            reason="status",
        )

    if not can_patient_cancel(appointment, now):
        raise PolicyDeniedException("Cannot cancel past appointments", reason="past")
