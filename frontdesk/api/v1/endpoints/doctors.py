"""Doctor availability endpoints for staff."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from frontdesk.dependencies import Appointments, CurrentStaff
from frontdesk.schemas.appointments import AvailableSlotsResponse

router = APIRouter()


@router.get(
    "/{doctor_id}/slots",
    response_model=AvailableSlotsResponse,
    status_code=status.HTTP_200_OK,
    tags=["Doctors"],
    summary="List free slots",
)
async def list_available_slots(
    doctor_id: UUID,
    current_staff: CurrentStaff,
    service: Appointments,
    day: date = Query(..., alias="date"),
) -> AvailableSlotsResponse:
    """
    List bookable slot starts for a doctor on a day.

    Args:
        doctor_id: Doctor ID
        current_staff: Authenticated staff member
        service: Appointment service
        day: Calendar day

    Returns:
        Free slot starts; empty when the doctor is not working that day
    """
    slots = await service.list_available_slots(doctor_id, day)
    return AvailableSlotsResponse(
        doctor_id=doctor_id,
        date=day,
        duration_minutes=service.config.default_appointment_duration,
        slots=slots,
    )
