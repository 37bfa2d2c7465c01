from .event_session import EventSession
from .attendance_record import AttendanceRecord
from .submission_marker import SubmissionMarker
from .device_binding import DeviceBinding
from .deletion_job import DeletionJob

__all__ = [
    "EventSession",
    "AttendanceRecord",
    "SubmissionMarker",
    "DeviceBinding",
    "DeletionJob"
]
