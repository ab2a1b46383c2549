"""FastAPI dependencies."""

from typing import Annotated

import redis
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from frontdesk.config import settings
from frontdesk.core.exceptions import ValidationException
from frontdesk.core.redis_client import get_redis_client
from frontdesk.core.security import Actor, ActorRole, actor_from_claims, decode_access_token
from frontdesk.database import get_db
from frontdesk.schemas.appointments import AppointmentStatus
from frontdesk.services.appointment_service import AppointmentService
from frontdesk.services.appointment_store import AppointmentStore
from frontdesk.services.directory_service import DirectoryService
from frontdesk.services.queue_sequencer import QueueSequencer

# Security
security = HTTPBearer()


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Actor:
    """
    Extract and validate the caller from the bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Authenticated actor

    Raises:
        HTTPException: If token is invalid or expired
    """
    payload = decode_access_token(credentials.credentials)
    actor = actor_from_claims(payload) if payload is not None else None

    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return actor


async def get_current_staff(
    actor: Annotated[Actor, Depends(get_current_actor)],
) -> Actor:
    """Require a front-desk staff member."""
    if actor.role != ActorRole.STAFF:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return actor


async def get_current_patient(
    actor: Annotated[Actor, Depends(get_current_actor)],
) -> Actor:
    """Require a patient portal user."""
    if actor.role != ActorRole.PATIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Patient access required",
        )
    return actor


def get_status_filter(
    status_param: Annotated[
        str | None,
        Query(alias="status", description="Comma-separated statuses, e.g. scheduled,confirmed"),
    ] = None,
) -> list[AppointmentStatus] | None:
    """
    Parse the comma-separated ``status`` query parameter.

    Raises:
        ValidationException: If any value is not a known status
    """
    if not status_param:
        return None

    statuses = []
    for value in status_param.split(","):
        value = value.strip()
        if not value:
            continue
        try:
            statuses.append(AppointmentStatus(value))
        except ValueError:
            raise ValidationException(f"Unknown status: {value}", field="status") from None
    return statuses or None


def get_appointment_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    redis_client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> AppointmentService:
    """Wire the appointment service for one request."""
    sequencer = QueueSequencer(
        redis_client,
        clinic_id=settings.clinic_id,
        ttl_seconds=settings.queue_counter_ttl_seconds,
    )
    store = AppointmentStore(db, sequencer, clinic_id=settings.clinic_id)
    return AppointmentService(store, DirectoryService(db))


# Type aliases for dependency injection
CurrentStaff = Annotated[Actor, Depends(get_current_staff)]
CurrentPatient = Annotated[Actor, Depends(get_current_patient)]
Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]
StatusFilter = Annotated[list[AppointmentStatus] | None, Depends(get_status_filter)]
