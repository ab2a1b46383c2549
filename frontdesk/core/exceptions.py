"""Custom application exceptions."""

from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize exception with message, status code and structured details."""
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(
        self,
        message: str = "Resource not found",
        resource: str | None = None,
        resource_id: Any = None,
    ):
        """Initialize with 404 status code."""
        details = {}
        if resource:
            details = {"resource": resource, "id": str(resource_id)}
        super().__init__(message, status_code=404, details=details)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Status conflict exception.

    Raised when a requested transition is not allowed from the persisted
    status, or when a conditional write loses to a concurrent update.
    """

    def __init__(
        self,
        message: str = "Conflict",
        current_status: str | None = None,
        requested_status: str | None = None,
    ):
        """Initialize with 409 status code."""
        self.current_status = current_status
        self.requested_status = requested_status
        details = {}
        if current_status or requested_status:
            details = {"current_status": current_status, "requested_status": requested_status}
        super().__init__(message, status_code=409, details=details)


class SlotUnavailableException(AppException):
    """Requested slot overlaps an existing booking or falls outside working hours."""

    def __init__(
        self,
        message: str = "Requested slot is not available",
        doctor_id: Any = None,
        date: Any = None,
        time: Any = None,
        reason: str = "overlap",
    ):
        """Initialize with 409 status code."""
        super().__init__(
            message,
            status_code=409,
            details={
                "doctor_id": str(doctor_id) if doctor_id else None,
                "date": str(date) if date else None,
                "time": str(time) if time else None,
                "reason": reason,
            },
        )


class PolicyDeniedException(AppException):
    """Patient self-service action rejected by clinic policy."""

    def __init__(self, message: str = "Action not permitted", reason: str | None = None):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403, details={"reason": reason} if reason else {})


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error", field: str | None = None):
        """Initialize with 422 status code."""
        self.field = field
        super().__init__(message, status_code=422, details={"field": field} if field else {})
