"""Patient portal endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from frontdesk.core.exceptions import ForbiddenException
from frontdesk.dependencies import Appointments, CurrentPatient, StatusFilter
from frontdesk.schemas.appointments import (
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AvailableSlotsResponse,
    PatientAppointmentRequest,
)

router = APIRouter()


@router.post(
    "/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Patient Portal"],
    summary="Request an appointment",
)
async def request_appointment(
    data: PatientAppointmentRequest,
    current_patient: CurrentPatient,
    service: Appointments,
) -> AppointmentResponse:
    """
    Submit a self-service booking. It stays ``pending`` until staff confirm it.

    Args:
        data: Requested slot
        current_patient: Authenticated patient
        service: Appointment service

    Returns:
        Created appointment with status ``pending``
    """
    return await service.create_patient_requested_appointment(
        patient_id=current_patient.patient_id,
        doctor_id=data.doctor_id,
        appointment_date=data.appointment_date,
        appointment_time=data.appointment_time,
        reason=data.reason,
    )


@router.get(
    "/appointments",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Patient Portal"],
    summary="List own appointments",
)
async def list_own_appointments(
    current_patient: CurrentPatient,
    service: Appointments,
    statuses: StatusFilter,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """List the patient's own appointments, optionally narrowed by status."""
    filters = AppointmentFilters(
        patient_id=current_patient.patient_id,
        statuses=statuses,
        page=page,
        page_size=page_size,
    )
    return await service.list_appointments(filters)


@router.get(
    "/appointments/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Patient Portal"],
    summary="Get own appointment",
)
async def get_own_appointment(
    appointment_id: UUID,
    current_patient: CurrentPatient,
    service: Appointments,
) -> AppointmentResponse:
    """Get one of the patient's own appointments."""
    appointment = await service.get_appointment(appointment_id)
    if appointment.patient_id != current_patient.patient_id:
        raise ForbiddenException("Access denied to this appointment")
    return appointment


@router.post(
    "/appointments/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Patient Portal"],
    summary="Cancel own appointment",
)
async def cancel_own_appointment(
    appointment_id: UUID,
    current_patient: CurrentPatient,
    service: Appointments,
) -> AppointmentResponse:
    """
    Cancel one of the patient's upcoming appointments.

    Past appointments and appointments that are completed, cancelled or
    marked no-show are refused with 403.
    """
    return await service.cancel_as_patient(appointment_id, current_patient.patient_id)


@router.get(
    "/doctors/{doctor_id}/slots",
    response_model=AvailableSlotsResponse,
    status_code=status.HTTP_200_OK,
    tags=["Patient Portal"],
    summary="List bookable slots",
)
async def list_bookable_slots(
    doctor_id: UUID,
    current_patient: CurrentPatient,
    service: Appointments,
    day: date = Query(..., alias="date"),
) -> AvailableSlotsResponse:
    """List slots a patient may still book online for a doctor on a day."""
    slots = await service.list_available_slots(doctor_id, day, patient_facing=True)
    return AvailableSlotsResponse(
        doctor_id=doctor_id,
        date=day,
        duration_minutes=service.config.default_appointment_duration,
        slots=slots,
    )
