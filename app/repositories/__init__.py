from .event_session_repository import EventSessionRepository
from .attendance_record_repository import AttendanceRecordRepository
from .submission_marker_repository import SubmissionMarkerRepository
from .device_binding_repository import DeviceBindingRepository
from .deletion_job_repository import DeletionJobRepository

__all__ = [
    "EventSessionRepository",
    "AttendanceRecordRepository",
    "SubmissionMarkerRepository",
    "DeviceBindingRepository",
    "DeletionJobRepository"
]
