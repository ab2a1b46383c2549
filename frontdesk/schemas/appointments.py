"""Appointment schemas for request/response validation."""

from datetime import date, datetime, time
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    RESCHEDULED = "rescheduled"
    NO_SHOW = "no-show"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentOrigin(str, Enum):
    """How an appointment entered the system."""

    STAFF = "staff"
    WALK_IN = "walk-in"
    PATIENT_PORTAL = "patient-portal"


class _AppointmentDetails(BaseModel):
    """Free-text fields shared by the creation schemas."""

    reason: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("reason", "notes")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        """Trim whitespace and collapse empty strings to None."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class ScheduledAppointmentCreate(_AppointmentDetails):
    """Staff booking of a regular appointment."""

    patient_id: UUID
    doctor_id: UUID
    appointment_date: date
    appointment_time: time
    # Bounds come from settings and are checked by the service
    duration_minutes: int | None = None
    room: str | None = Field(None, max_length=100)


class WalkInCreate(_AppointmentDetails):
    """Staff registration of a walk-in patient."""

    patient_id: UUID
    appointment_date: date | None = None
    doctor_id: UUID | None = None
    room: str | None = Field(None, max_length=100)


class PatientAppointmentRequest(BaseModel):
    """Self-service booking submitted from the patient portal."""

    doctor_id: UUID | None = None
    appointment_date: date
    appointment_time: time
    reason: str | None = Field(None, max_length=500)


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus


class AppointmentReschedule(BaseModel):
    """Move an appointment to a new slot."""

    appointment_date: date
    appointment_time: time
    doctor_id: UUID | None = None
    # Bounds come from settings and are checked by the service
    duration_minutes: int | None = None


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    appointment_code: str
    clinic_id: str
    patient_id: UUID
    doctor_id: UUID | None = None
    room: str | None = None
    appointment_date: date
    appointment_time: time | None = None
    duration_minutes: int
    is_walk_in: bool
    queue_number: int | None = None
    estimated_wait_time: int | None = None
    status: AppointmentStatus
    origin: AppointmentOrigin
    reason: str | None = None
    notes: str | None = None
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime
    cancelled_at: datetime | None = None

    model_config = {"from_attributes": True}


class AvailableSlotsResponse(BaseModel):
    """Free slot starts for one doctor on one day."""

    doctor_id: UUID
    date: date
    duration_minutes: int
    slots: list[time]


class WalkInQueueResponse(BaseModel):
    """The day's walk-in line in queue order."""

    date: date
    total: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    appointment_date: date | None = None
    doctor_id: UUID | None = None
    patient_id: UUID | None = None
    statuses: list[AppointmentStatus] | None = None
    is_walk_in: bool | None = None
    room: str | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]
