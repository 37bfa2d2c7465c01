from atams.schemas import DataResponse, PaginationResponse

from .event_session import (
    EventSession,
    EventSessionCreate,
    EventSessionUpdate,
    GeoFence
)
from .attendance import (
    AttendanceRecord,
    DeviceSignals,
    GeoPoint,
    SubmissionRequest,
    SubmissionResponse
)
from .deletion import DeletionJob, DeletionResult

__all__ = [
    # Session schemas
    "EventSession",
    "EventSessionCreate",
    "EventSessionUpdate",
    "GeoFence",
    # Attendance schemas
    "AttendanceRecord",
    "DeviceSignals",
    "GeoPoint",
    "SubmissionRequest",
    "SubmissionResponse",
    # Deletion schemas
    "DeletionJob",
    "DeletionResult",
    # Common schemas
    "DataResponse",
    "PaginationResponse"
]
