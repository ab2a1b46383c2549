"""API v1 router configuration."""

from fastapi import APIRouter

from frontdesk.api.v1.endpoints import (
    appointments,
    doctors,
    health,
    portal,
    walk_ins,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(walk_ins.router, prefix="/walk-ins", tags=["Walk-ins"])
api_router.include_router(doctors.router, prefix="/doctors", tags=["Doctors"])
api_router.include_router(portal.router, prefix="/portal", tags=["Patient Portal"])
