"""Slot availability calculation.

Everything here is pure: callers pass in working hours, the doctor's
existing appointments and the current time, and get back slot starts.
Time ranges are compared as half-open ``[start, end)`` minute intervals.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Protocol

from frontdesk.config import WEEKDAYS, BusinessHours
from frontdesk.schemas.appointments import AppointmentStatus

MINUTES_PER_DAY = 24 * 60


class Booking(Protocol):
    """The fields of an appointment that occupy a doctor's time."""

    appointment_time: time | None
    duration_minutes: int
    status: AppointmentStatus


@dataclass(frozen=True)
class WorkingHours:
    """Bookable window for a doctor on a particular day."""

    open: time
    close: time


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval intersection test."""
    return start_a < end_b and start_b < end_a


def working_hours_for(
    day: date,
    business_hours: dict[str, BusinessHours],
    doctor: dict[str, Any] | None = None,
) -> WorkingHours | None:
    """
    Resolve the bookable window for ``day``.

    Clinic business hours are narrowed by the doctor's working days and
    optional start/end times.

    Returns:
        Working hours, or None when the clinic or doctor is closed that day
    """
    weekday = WEEKDAYS[day.weekday()]
    clinic = business_hours.get(weekday)
    if clinic is None or clinic.closed:
        return None

    open_at, close_at = clinic.open, clinic.close

    if doctor is not None:
        available_days = doctor.get("available_days")
        if available_days is not None and weekday not in {d.lower() for d in available_days}:
            return None
        if doctor.get("available_start_time"):
            open_at = max(open_at, doctor["available_start_time"])
        if doctor.get("available_end_time"):
            close_at = min(close_at, doctor["available_end_time"])

    if open_at >= close_at:
        return None
    return WorkingHours(open=open_at, close=close_at)


def busy_intervals(
    existing: Iterable[Booking],
    exclude_id: Any = None,
) -> list[tuple[int, int]]:
    """Minute intervals taken by non-cancelled appointments that hold a time slot."""
    intervals = []
    for appointment in existing:
        if appointment.status == AppointmentStatus.CANCELLED:
            continue
        if appointment.appointment_time is None:
            continue
        if exclude_id is not None and getattr(appointment, "id", None) == exclude_id:
            continue
        start = to_minutes(appointment.appointment_time)
        intervals.append((start, start + appointment.duration_minutes))
    return intervals


def generate_slot_grid(hours: WorkingHours, step_minutes: int, duration_minutes: int) -> list[time]:
    """Every slot start from opening time, ``step_minutes`` apart, that ends by closing time."""
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    start = to_minutes(hours.open)
    close = to_minutes(hours.close)
    slots = []
    while start + duration_minutes <= close:
        slots.append(from_minutes(start))
        start += step_minutes
    return slots


def available_slots(
    day: date,
    hours: WorkingHours | None,
    existing: Iterable[Booking],
    duration_minutes: int,
    step_minutes: int | None = None,
    not_before: datetime | None = None,
) -> list[time]:
    """
    Compute free slot starts for one doctor on one day.

    Args:
        day: Calendar day being listed
        hours: Working hours, None when closed
        existing: The doctor's appointments on ``day``
        duration_minutes: Length of the slot being offered
        step_minutes: Grid granularity, defaults to ``duration_minutes``
        not_before: Earliest bookable moment (now plus lead time)

    Returns:
        Ordered slot starts
    """
    if hours is None:
        return []

    busy = busy_intervals(existing)
    free = []
    for slot in generate_slot_grid(hours, step_minutes or duration_minutes, duration_minutes):
        if not_before is not None and datetime.combine(day, slot) < not_before:
            continue
        start = to_minutes(slot)
        end = start + duration_minutes
        if any(intervals_overlap(start, end, b_start, b_end) for b_start, b_end in busy):
            continue
        free.append(slot)
    return free


def within_working_hours(hours: WorkingHours | None, start: time, duration_minutes: int) -> bool:
    """Check that ``[start, start + duration)`` fits inside the working window."""
    if hours is None:
        return False
    begin = to_minutes(start)
    return to_minutes(hours.open) <= begin and begin + duration_minutes <= to_minutes(hours.close)


def conflicts_with(
    existing: Iterable[Booking],
    start: time,
    duration_minutes: int,
    exclude_id: Any = None,
) -> bool:
    """Check whether a requested slot overlaps any existing non-cancelled booking."""
    begin = to_minutes(start)
    end = begin + duration_minutes
    return any(
        intervals_overlap(begin, end, b_start, b_end)
        for b_start, b_end in busy_intervals(existing, exclude_id=exclude_id)
    )


def booking_window_violation(
    day: date,
    start: time,
    now: datetime,
    min_advance_hours: int,
    max_advance_days: int,
) -> str | None:
    """
    Check a patient-facing booking against the advance booking window.

    Returns:
        ``"too_soon"``, ``"too_far"`` or None when the booking is allowed
    """
    requested = datetime.combine(day, start)
    if requested < now + timedelta(hours=min_advance_hours):
        return "too_soon"
    if day > now.date() + timedelta(days=max_advance_days):
        return "too_far"
    return None
