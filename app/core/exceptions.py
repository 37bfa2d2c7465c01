"""
Attendance Exceptions - Typed errors raised by the submission and deletion flows

Every error extends the atams exception hierarchy so the registered
handlers render it as {"success": false, "message": ..., "details": {...}}.
`details["code"]` carries a stable machine-readable identifier.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import status
from atams.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
)


def _details(code: str, **extra: Any) -> Dict[str, Any]:
    details = {"code": code}
    details.update({k: v for k, v in extra.items() if v is not None})
    return details


class SessionNotFoundException(NotFoundException):
    def __init__(self, message: str = "Session not found"):
        super().__init__(message, _details("NOT_FOUND"))


class DeletionJobNotFoundException(NotFoundException):
    def __init__(self, message: str = "Deletion job not found"):
        super().__init__(message, _details("NOT_FOUND"))


class InactiveException(ForbiddenException):
    def __init__(self, message: str = "This session is not active"):
        super().__init__(message, _details("INACTIVE"))


class NotYetValidException(ForbiddenException):
    def __init__(self, valid_from: Optional[datetime] = None):
        super().__init__(
            "This session is not yet valid",
            _details("NOT_YET_VALID", valid_from=valid_from.isoformat() if valid_from else None)
        )


class ExpiredException(ForbiddenException):
    def __init__(self, valid_until: Optional[datetime] = None):
        super().__init__(
            "This session has expired",
            _details("EXPIRED", valid_until=valid_until.isoformat() if valid_until else None)
        )


class InvalidFormException(BadRequestException):
    def __init__(self, missing_fields):
        super().__init__(
            "Missing required form fields",
            _details("INVALID_FORM", missing_fields=list(missing_fields))
        )


class InvalidScheduleException(BadRequestException):
    def __init__(self, valid_from: datetime, valid_until: datetime):
        super().__init__(
            "es_valid_until must be after es_valid_from",
            _details("INVALID_SCHEDULE", valid_from=valid_from.isoformat(), valid_until=valid_until.isoformat())
        )


class DuplicateSubmissionException(ConflictException):
    def __init__(self, message: str = "This device has already submitted attendance"):
        super().__init__(message, _details("DUPLICATE_SUBMISSION"))


class TooSoonException(AppException):
    """Raised while a device is still inside its re-submission cooldown"""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Already checked in, try again in {retry_after_seconds} seconds",
            status.HTTP_429_TOO_MANY_REQUESTS,
            _details("TOO_SOON", retry_after_seconds=retry_after_seconds)
        )


class LocationRequiredException(BadRequestException):
    def __init__(self, message: str = "Location is required to check in to this session"):
        super().__init__(message, _details("LOCATION_REQUIRED"))


class OutsideGeofenceException(ForbiddenException):
    def __init__(self, distance_m: float, radius_m: float):
        self.distance_m = distance_m
        super().__init__(
            f"Out of geofence (distance: {distance_m:.0f}m, allowed: {radius_m:.0f}m)",
            _details("OUTSIDE_GEOFENCE", distance_m=round(distance_m, 1), radius_m=radius_m)
        )


class PermissionDeniedException(ForbiddenException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message, _details("PERMISSION_DENIED"))


class InternalException(InternalServerException):
    """Generic failure surfaced to callers; the cause is only logged"""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, _details("INTERNAL"))


class JobStateConflictException(ConflictException):
    def __init__(self, current_status: str, message: str = "Only failed deletion jobs can be re-triggered"):
        super().__init__(message, _details("INVALID_JOB_STATE", status=current_status))
