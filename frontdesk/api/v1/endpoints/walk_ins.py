"""Walk-in queue endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from frontdesk.dependencies import Appointments, CurrentStaff
from frontdesk.schemas.appointments import (
    AppointmentResponse,
    WalkInCreate,
    WalkInQueueResponse,
)

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Walk-ins"],
    summary="Register a walk-in",
)
async def register_walk_in(
    data: WalkInCreate,
    current_staff: CurrentStaff,
    service: Appointments,
) -> AppointmentResponse:
    """
    Register a walk-in patient and assign the next queue number for today.

    Args:
        data: Walk-in details
        current_staff: Authenticated staff member
        service: Appointment service

    Returns:
        Created walk-in appointment
    """
    return await service.create_walk_in(
        patient_id=data.patient_id,
        appointment_date=data.appointment_date,
        reason=data.reason,
        doctor_id=data.doctor_id,
        room=data.room,
        notes=data.notes,
        created_by=current_staff.id,
    )


@router.get(
    "/",
    response_model=WalkInQueueResponse,
    status_code=status.HTTP_200_OK,
    tags=["Walk-ins"],
    summary="List the walk-in queue",
)
async def list_walk_in_queue(
    current_staff: CurrentStaff,
    service: Appointments,
    day: date | None = Query(None, alias="date"),
) -> WalkInQueueResponse:
    """
    List active walk-ins for a day in queue order.

    Args:
        current_staff: Authenticated staff member
        service: Appointment service
        day: Day to list, defaults to today

    Returns:
        Walk-ins with status scheduled or confirmed, ordered by queue number
    """
    day = day or service.clock().date()
    items = await service.list_walk_in_queue(day)
    return WalkInQueueResponse(date=day, total=len(items), items=items)
