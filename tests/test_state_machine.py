"""Tests for the appointment status machine."""

import itertools

import pytest

from frontdesk.core.exceptions import ConflictException
from frontdesk.schemas.appointments import AppointmentOrigin, AppointmentStatus
from frontdesk.services.state_machine import (
    ALLOWED_TRANSITIONS,
    can_transition,
    ensure_transition,
    initial_state_for,
    is_terminal,
)

S = AppointmentStatus

EXPECTED_TRANSITIONS = {
    (S.PENDING, S.CONFIRMED),
    (S.PENDING, S.CANCELLED),
    (S.SCHEDULED, S.CONFIRMED),
    (S.SCHEDULED, S.CANCELLED),
    (S.RESCHEDULED, S.CONFIRMED),
    (S.RESCHEDULED, S.CANCELLED),
    (S.CONFIRMED, S.COMPLETED),
    (S.CONFIRMED, S.NO_SHOW),
}


def test_every_status_has_a_table_entry() -> None:
    """Every status must be a key of the transition table."""
    assert set(ALLOWED_TRANSITIONS) == set(AppointmentStatus)


@pytest.mark.parametrize("current,requested", list(itertools.product(S, repeat=2)))
def test_transition_table_is_closed(current: S, requested: S) -> None:
    """Only listed pairs are accepted; everything else raises a conflict."""
    if (current, requested) in EXPECTED_TRANSITIONS:
        assert can_transition(current, requested)
        ensure_transition(current, requested)
    else:
        assert not can_transition(current, requested)
        with pytest.raises(ConflictException) as exc_info:
            ensure_transition(current, requested)
        assert exc_info.value.details == {
            "current_status": current.value,
            "requested_status": requested.value,
        }


@pytest.mark.parametrize("status", [S.COMPLETED, S.CANCELLED])
def test_terminal_statuses_reject_everything(status: S) -> None:
    """Completed and cancelled appointments accept no further change."""
    assert is_terminal(status)
    for requested in S:
        with pytest.raises(ConflictException):
            ensure_transition(status, requested)


def test_confirmed_cannot_be_cancelled_by_staff() -> None:
    """Once confirmed, an appointment can only be completed or marked no-show."""
    with pytest.raises(ConflictException) as exc_info:
        ensure_transition(S.CONFIRMED, S.CANCELLED)
    assert "confirmed" in exc_info.value.message


def test_terminal_message_mentions_current_status() -> None:
    with pytest.raises(ConflictException) as exc_info:
        ensure_transition(S.COMPLETED, S.CONFIRMED)
    assert exc_info.value.message.startswith("Appointment is already completed")


def test_accepts_raw_status_values() -> None:
    assert can_transition("pending", "confirmed")
    assert not can_transition("no-show", "confirmed")


@pytest.mark.parametrize(
    "origin,status,is_walk_in",
    [
        (AppointmentOrigin.STAFF, S.SCHEDULED, False),
        (AppointmentOrigin.WALK_IN, S.SCHEDULED, True),
        (AppointmentOrigin.PATIENT_PORTAL, S.PENDING, False),
    ],
)
def test_initial_state_by_origin(origin: AppointmentOrigin, status: S, is_walk_in: bool) -> None:
    """The origin alone decides the starting status and queue behaviour."""
    state = initial_state_for(origin)
    assert state.status == status
    assert state.is_walk_in is is_walk_in
