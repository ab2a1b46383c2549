"""Staff appointment endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from frontdesk.dependencies import Appointments, CurrentStaff, StatusFilter
from frontdesk.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
    ScheduledAppointmentCreate,
)

router = APIRouter()


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Schedule an appointment",
)
async def create_appointment(
    data: ScheduledAppointmentCreate,
    current_staff: CurrentStaff,
    service: Appointments,
) -> AppointmentResponse:
    """
    Book a regular appointment for a patient.

    Args:
        data: Appointment creation data
        current_staff: Authenticated staff member
        service: Appointment service

    Returns:
        Created appointment with status ``scheduled``
    """
    return await service.create_scheduled_appointment(
        patient_id=data.patient_id,
        doctor_id=data.doctor_id,
        appointment_date=data.appointment_date,
        appointment_time=data.appointment_time,
        duration_minutes=data.duration_minutes,
        reason=data.reason,
        notes=data.notes,
        room=data.room,
        created_by=current_staff.id,
    )


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    current_staff: CurrentStaff,
    service: Appointments,
    statuses: StatusFilter,
    day: date | None = Query(None, alias="date"),
    doctor_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None),
    is_walk_in: bool | None = Query(None),
    room: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List the clinic's appointments with filters.

    Args:
        current_staff: Authenticated staff member
        service: Appointment service
        statuses: Statuses to include, from a comma-separated ``status`` parameter
        day: Appointment date
        doctor_id: Filter by doctor
        patient_id: Filter by patient
        is_walk_in: Only walk-ins (true) or only booked visits (false)
        room: Filter by room
        page: Page number
        page_size: Items per page

    Returns:
        Paginated appointments ordered by date, time and queue number
    """
    filters = AppointmentFilters(
        appointment_date=day,
        doctor_id=doctor_id,
        patient_id=patient_id,
        statuses=statuses,
        is_walk_in=is_walk_in,
        room=room,
        page=page,
        page_size=page_size,
    )
    return await service.list_appointments(filters)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_staff: CurrentStaff,
    service: Appointments,
) -> AppointmentResponse:
    """Get a specific appointment by ID."""
    return await service.get_appointment(appointment_id)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Change appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    current_staff: CurrentStaff,
    service: Appointments,
) -> AppointmentResponse:
    """
    Confirm, cancel, complete or mark an appointment as no-show.

    A transition that is not allowed from the stored status returns 409 with
    the current and requested statuses so the caller can refresh and retry.

    Args:
        appointment_id: Appointment ID
        data: Requested status
        current_staff: Authenticated staff member
        service: Appointment service

    Returns:
        Updated appointment
    """
    return await service.transition_status(appointment_id, data.status)


@router.put(
    "/{appointment_id}/schedule",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Reschedule appointment",
)
async def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    current_staff: CurrentStaff,
    service: Appointments,
) -> AppointmentResponse:
    """Move an appointment to another slot, keeping its id and code."""
    return await service.reschedule_appointment(
        appointment_id,
        appointment_date=data.appointment_date,
        appointment_time=data.appointment_time,
        doctor_id=data.doctor_id,
        duration_minutes=data.duration_minutes,
    )
