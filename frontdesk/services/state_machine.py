"""Appointment status machine.

All allowed status changes live in ``ALLOWED_TRANSITIONS``; anything not
listed there is rejected. Patient self-cancellation is not part of the
table because it is gated by the cancellation policy instead.
"""

from dataclasses import dataclass

from frontdesk.core.exceptions import ConflictException
from frontdesk.schemas.appointments import AppointmentOrigin, AppointmentStatus

TERMINAL_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.RESCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}),
    AppointmentStatus.NO_SHOW: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Statuses from which an appointment may be moved to another slot
RESCHEDULABLE_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.RESCHEDULED,
    }
)


@dataclass(frozen=True)
class InitialState:
    """Status and queue behaviour selected by an appointment's origin."""

    status: AppointmentStatus
    is_walk_in: bool


_INITIAL_STATES = {
    AppointmentOrigin.STAFF: InitialState(AppointmentStatus.SCHEDULED, is_walk_in=False),
    AppointmentOrigin.WALK_IN: InitialState(AppointmentStatus.SCHEDULED, is_walk_in=True),
    AppointmentOrigin.PATIENT_PORTAL: InitialState(AppointmentStatus.PENDING, is_walk_in=False),
}


def initial_state_for(origin: AppointmentOrigin) -> InitialState:
    """Return the initial status for an appointment created through ``origin``."""
    return _INITIAL_STATES[AppointmentOrigin(origin)]


def is_terminal(status: AppointmentStatus) -> bool:
    return AppointmentStatus(status) in TERMINAL_STATUSES


def can_transition(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    """Check whether ``current -> requested`` is in the transition table."""
    return AppointmentStatus(requested) in ALLOWED_TRANSITIONS[AppointmentStatus(current)]


def ensure_transition(current: AppointmentStatus, requested: AppointmentStatus) -> None:
    """
    Validate a transition against the table.

    Raises:
        ConflictException: If the transition is not allowed
    """
    current = AppointmentStatus(current)
    requested = AppointmentStatus(requested)

    if can_transition(current, requested):
        return

    if current in TERMINAL_STATUSES:
        message = f"Appointment is already {current.value} and cannot become {requested.value}"
    else:
        message = f"Cannot change appointment status from {current.value} to {requested.value}"

    raise ConflictException(
        message,
        current_status=current.value,
        requested_status=requested.value,
    )
