"""Hand-off point to the clinic's reminder delivery service."""

from typing import Protocol

import structlog

from frontdesk.schemas.appointments import AppointmentResponse

logger = structlog.get_logger(__name__)


class ConfirmationNotifier(Protocol):
    """Receives a signal whenever an appointment becomes confirmed."""

    async def appointment_confirmed(self, appointment: AppointmentResponse) -> None: ...


class LoggingNotifier:
    """
    Default notifier.

    Reminder delivery lives outside this service, so the confirmation is
    only recorded as a structured log event for the delivery pipeline to
    pick up.
    """

    async def appointment_confirmed(self, appointment: AppointmentResponse) -> None:
        """
        Record that an appointment was confirmed.

        Args:
            appointment: The confirmed appointment
        """
        logger.info(
            "appointment_confirmed_notification",
            appointment_id=str(appointment.id),
            appointment_code=appointment.appointment_code,
            patient_id=str(appointment.patient_id),
            appointment_date=appointment.appointment_date.isoformat(),
            appointment_time=(
                appointment.appointment_time.strftime("%H:%M") if appointment.appointment_time else None
            ),
        )
