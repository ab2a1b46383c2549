"""Tests for patient self-cancellation rules."""

from datetime import UTC, date, datetime, time
from uuid import uuid4

import pytest

from frontdesk.core.exceptions import PolicyDeniedException
from frontdesk.schemas.appointments import (
    AppointmentOrigin,
    AppointmentResponse,
    AppointmentStatus,
)
from frontdesk.services.cancellation_policy import (
    can_patient_cancel,
    ensure_patient_can_cancel,
    scheduled_at,
)

NOW = datetime(2024, 6, 1, 12, 0)
PATIENT_ID = uuid4()


def make_appointment(
    appointment_date: date,
    appointment_time: time | None = time(10, 0),
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
) -> AppointmentResponse:
    created = datetime(2024, 5, 1, tzinfo=UTC)
    return AppointmentResponse(
        id=uuid4(),
        appointment_code="APT-20240601-ABCDEF12",
        clinic_id="main",
        patient_id=PATIENT_ID,
        doctor_id=uuid4(),
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        duration_minutes=30,
        is_walk_in=False,
        status=status,
        origin=AppointmentOrigin.STAFF,
        created_at=created,
        updated_at=created,
    )


def test_yesterday_is_denied() -> None:
    appointment = make_appointment(date(2024, 5, 31))

    with pytest.raises(PolicyDeniedException) as exc_info:
        ensure_patient_can_cancel(appointment, PATIENT_ID, NOW)
    assert exc_info.value.details == {"reason": "past"}


def test_tomorrow_is_allowed() -> None:
    appointment = make_appointment(date(2024, 6, 2))

    ensure_patient_can_cancel(appointment, PATIENT_ID, NOW)


def test_earlier_today_is_denied() -> None:
    appointment = make_appointment(date(2024, 6, 1), time(11, 30))

    assert not can_patient_cancel(appointment, NOW)


def test_later_today_is_allowed() -> None:
    appointment = make_appointment(date(2024, 6, 1), time(12, 30))

    assert can_patient_cancel(appointment, NOW)


def test_missing_time_counts_as_start_of_day() -> None:
    assert scheduled_at(date(2024, 6, 2), None) == datetime(2024, 6, 2, 0, 0)
    assert not can_patient_cancel(make_appointment(date(2024, 6, 1), None), NOW)


@pytest.mark.parametrize(
    "status",
    [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW],
)
def test_closed_statuses_are_denied(status: AppointmentStatus) -> None:
    appointment = make_appointment(date(2024, 6, 2), status=status)

    with pytest.raises(PolicyDeniedException) as exc_info:
        ensure_patient_can_cancel(appointment, PATIENT_ID, NOW)
    assert exc_info.value.details == {"reason": "status"}


@pytest.mark.parametrize(
    "status",
    [
        AppointmentStatus.PENDING,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.RESCHEDULED,
    ],
)
def test_open_statuses_are_allowed(status: AppointmentStatus) -> None:
    appointment = make_appointment(date(2024, 6, 2), status=status)

    assert can_patient_cancel(appointment, NOW)


def test_other_patients_appointment_is_denied() -> None:
    appointment = make_appointment(date(2024, 6, 2))

    with pytest.raises(PolicyDeniedException) as exc_info:
        ensure_patient_can_cancel(appointment, uuid4(), NOW)
    assert exc_info.value.details == {"reason": "not_owner"}
    assert exc_info.value.status_code == 403
