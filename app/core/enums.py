"""
Shared enumerations and the deletion job state value
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionKind(str, Enum):
    """What a participant opens: a check-in link or a scannable code"""
    SESSION = "session"
    CODE = "code"


class SubmissionMode(str, Enum):
    """How repeated submissions from one device are blocked"""
    ONE_TIME = "one_time"    # duplicate marker, blocks forever
    COOLDOWN = "cooldown"    # rolling window, blocks temporarily


class AttendanceStatus(str, Enum):
    PRESENT = "present"


class IdentitySource(str, Enum):
    """Which storage tier produced the device identity"""
    COOKIE = "cookie"
    LOCAL_STORE = "local_store"
    FINGERPRINT = "fingerprint"
    GENERATED = "generated"


class DeletionMode(str, Enum):
    SYNCHRONOUS = "synchronous"
    QUEUED = "queued"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    def can_transition_to(self, target: "JobStatus") -> bool:
        return target in _JOB_TRANSITIONS[self]


_JOB_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    # operator re-trigger
    JobStatus.FAILED: {JobStatus.PENDING},
    JobStatus.COMPLETED: set(),
}


@dataclass(frozen=True)
class JobState:
    """
    Deletion job state as a tagged value.

    Only FAILED carries a reason; constructing any other status with a
    reason (or FAILED without one) raises ValueError.
    """
    status: JobStatus
    reason: Optional[str] = None

    def __post_init__(self):
        if (self.status is JobStatus.FAILED) != (self.reason is not None):
            raise ValueError(f"Invalid job state: {self.status.value} with reason {self.reason!r}")

    @classmethod
    def pending(cls) -> "JobState":
        return cls(JobStatus.PENDING)

    @classmethod
    def processing(cls) -> "JobState":
        return cls(JobStatus.PROCESSING)

    @classmethod
    def completed(cls) -> "JobState":
        return cls(JobStatus.COMPLETED)

    @classmethod
    def failed(cls, reason: str) -> "JobState":
        return cls(JobStatus.FAILED, reason or "Unknown error")

    @classmethod
    def from_columns(cls, status: str, error: Optional[str]) -> "JobState":
        status = JobStatus(status)
        return cls(status, (error or "Unknown error") if status is JobStatus.FAILED else None)
