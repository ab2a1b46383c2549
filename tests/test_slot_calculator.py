"""Tests for slot availability calculation."""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from uuid import UUID, uuid4

import pytest

from frontdesk.config import BusinessHours
from frontdesk.schemas.appointments import AppointmentStatus
from frontdesk.services.slot_calculator import (
    WorkingHours,
    available_slots,
    booking_window_violation,
    conflicts_with,
    generate_slot_grid,
    intervals_overlap,
    within_working_hours,
    working_hours_for,
)

SATURDAY = date(2024, 6, 1)
MONDAY = date(2024, 6, 3)
DAY_HOURS = WorkingHours(open=time(8, 0), close=time(17, 0))


@dataclass
class FakeBooking:
    appointment_time: time | None
    duration_minutes: int = 30
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    id: UUID = field(default_factory=uuid4)


@pytest.fixture
def clinic_hours() -> dict[str, BusinessHours]:
    return {
        "monday": BusinessHours(day="monday", open=time(9, 0), close=time(17, 0)),
        "saturday": BusinessHours(day="saturday", open=time(9, 0), close=time(13, 0)),
        "sunday": BusinessHours(day="sunday", open=time(9, 0), close=time(13, 0), closed=True),
    }


def test_confirmed_booking_removes_its_slot() -> None:
    """A confirmed 09:00 booking blocks 09:00 but not its neighbours."""
    existing = [FakeBooking(time(9, 0))]

    slots = available_slots(SATURDAY, DAY_HOURS, existing, duration_minutes=30)

    assert time(9, 0) not in slots
    assert time(8, 30) in slots
    assert time(9, 30) in slots


def test_cancelled_booking_frees_its_slot() -> None:
    existing = [FakeBooking(time(9, 0), status=AppointmentStatus.CANCELLED)]

    slots = available_slots(SATURDAY, DAY_HOURS, existing, duration_minutes=30)

    assert time(9, 0) in slots


def test_walk_ins_without_time_do_not_block() -> None:
    existing = [FakeBooking(None, status=AppointmentStatus.SCHEDULED)]

    slots = available_slots(SATURDAY, DAY_HOURS, existing, duration_minutes=30)

    assert len(slots) == 18


def test_long_booking_blocks_every_overlapping_slot() -> None:
    existing = [FakeBooking(time(10, 0), duration_minutes=90)]

    slots = available_slots(SATURDAY, DAY_HOURS, existing, duration_minutes=30)

    for blocked in (time(10, 0), time(10, 30), time(11, 0)):
        assert blocked not in slots
    assert time(9, 30) in slots
    assert time(11, 30) in slots


def test_slots_end_by_closing_time() -> None:
    slots = generate_slot_grid(DAY_HOURS, step_minutes=30, duration_minutes=60)

    assert slots[0] == time(8, 0)
    assert slots[-1] == time(16, 0)


def test_finer_step_than_duration() -> None:
    existing = [FakeBooking(time(9, 0))]

    slots = available_slots(SATURDAY, DAY_HOURS, existing, duration_minutes=30, step_minutes=15)

    assert time(8, 30) in slots
    assert time(8, 45) not in slots
    assert time(9, 15) not in slots
    assert time(9, 30) in slots


def test_step_must_be_positive() -> None:
    with pytest.raises(ValueError):
        generate_slot_grid(DAY_HOURS, step_minutes=0, duration_minutes=30)


def test_not_before_hides_elapsed_slots() -> None:
    slots = available_slots(
        SATURDAY,
        DAY_HOURS,
        [],
        duration_minutes=30,
        not_before=datetime(2024, 6, 1, 12, 10),
    )

    assert slots[0] == time(12, 30)


def test_closed_day_has_no_slots() -> None:
    assert available_slots(SATURDAY, None, [], duration_minutes=30) == []


@pytest.mark.parametrize(
    "offset,overlaps",
    [
        (-30, False),
        (-29, True),
        (-15, True),
        (0, True),
        (15, True),
        (29, True),
        (30, False),
    ],
)
def test_overlap_is_half_open(offset: int, overlaps: bool) -> None:
    """A 30-minute booking at 09:00 conflicts with any 30-minute request starting in (08:30, 09:30)."""
    existing = [FakeBooking(time(9, 0))]
    start_minutes = 9 * 60 + offset
    start = time(start_minutes // 60, start_minutes % 60)

    assert conflicts_with(existing, start, 30) is overlaps


def test_conflict_check_can_exclude_the_appointment_itself() -> None:
    booking = FakeBooking(time(9, 0))

    assert conflicts_with([booking], time(9, 15), 30)
    assert not conflicts_with([booking], time(9, 15), 30, exclude_id=booking.id)


def test_intervals_touching_at_an_edge_do_not_overlap() -> None:
    assert not intervals_overlap(540, 570, 570, 600)
    assert intervals_overlap(540, 571, 570, 600)


def test_working_hours_follow_clinic_calendar(clinic_hours) -> None:
    assert working_hours_for(SATURDAY, clinic_hours) == WorkingHours(time(9, 0), time(13, 0))
    assert working_hours_for(date(2024, 6, 2), clinic_hours) is None
    # Tuesday is not configured at all
    assert working_hours_for(date(2024, 6, 4), clinic_hours) is None


def test_working_hours_narrowed_by_doctor(clinic_hours) -> None:
    doctor = {
        "available_days": ["Monday"],
        "available_start_time": time(10, 0),
        "available_end_time": time(18, 0),
    }

    assert working_hours_for(MONDAY, clinic_hours, doctor) == WorkingHours(time(10, 0), time(17, 0))
    assert working_hours_for(SATURDAY, clinic_hours, doctor) is None


def test_doctor_without_availability_uses_clinic_hours(clinic_hours) -> None:
    doctor = {"available_days": None, "available_start_time": None, "available_end_time": None}

    assert working_hours_for(MONDAY, clinic_hours, doctor) == WorkingHours(time(9, 0), time(17, 0))


def test_within_working_hours() -> None:
    assert within_working_hours(DAY_HOURS, time(8, 0), 30)
    assert within_working_hours(DAY_HOURS, time(16, 30), 30)
    assert not within_working_hours(DAY_HOURS, time(16, 45), 30)
    assert not within_working_hours(DAY_HOURS, time(7, 45), 30)
    assert not within_working_hours(None, time(9, 0), 30)


@pytest.mark.parametrize(
    "day,start,expected",
    [
        (date(2024, 6, 1), time(8, 30), "too_soon"),
        (date(2024, 6, 1), time(9, 0), None),
        (date(2024, 8, 30), time(9, 0), None),
        (date(2024, 8, 31), time(9, 0), "too_far"),
    ],
)
def test_booking_window(day: date, start: time, expected: str | None) -> None:
    now = datetime(2024, 6, 1, 7, 0)

    assert booking_window_violation(day, start, now, min_advance_hours=2, max_advance_days=90) == expected
