from .session_service import SessionService
from .attendance_service import AttendanceService
from .deletion_service import SessionDeletionService
from .deletion_worker import DeletionWorker

__all__ = [
    "SessionService",
    "AttendanceService",
    "SessionDeletionService",
    "DeletionWorker"
]
