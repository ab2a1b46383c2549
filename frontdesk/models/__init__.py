"""Database models."""

from frontdesk.models.appointments import appointments
from frontdesk.models.doctors import doctors
from frontdesk.models.patients import patients

__all__ = [
    "appointments",
    "doctors",
    "patients",
]
