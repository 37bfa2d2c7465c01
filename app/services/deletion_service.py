"""
Deletion Service - Cascading deletion of a session and its dependent records

Small sessions are purged inline. Larger ones get a DeletionJob and a
DeletionJobCreated event; the worker in deletion_worker consumes it.
"""
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from atams.logging import get_logger
from app.core.clock import utc_now
from app.core.config import settings
from app.core.enums import DeletionMode, JobState, JobStatus
from app.core.exceptions import (
    DeletionJobNotFoundException,
    JobStateConflictException,
    PermissionDeniedException,
    SessionNotFoundException,
)
from app.core.permissions import can_manage, is_elevated
from app.repositories.attendance_record_repository import AttendanceRecordRepository
from app.repositories.deletion_job_repository import DeletionJobRepository
from app.repositories.event_session_repository import EventSessionRepository
from app.repositories.submission_marker_repository import SubmissionMarkerRepository
from app.schemas.deletion import DeletionJob, DeletionResult

logger = get_logger(__name__)


class DependentCollection(Protocol):
    """A table whose rows reference a session and go away with it"""

    def count_for_session(self, db: Session, session_id: str) -> int:
        ...

    def delete_chunk_for_session(self, db: Session, session_id: str, limit: int) -> int:
        ...


@dataclass(frozen=True)
class DeletionJobCreated:
    job_id: str
    session_id: str


class JobDispatcher(Protocol):
    def dispatch(self, event: DeletionJobCreated) -> None:
        ...


class SessionPurger:
    """
    Page-and-delete loop over every dependent collection.

    Each pass re-queries what still references the session, so running it
    again after a partial run only deletes what is left.
    """

    def __init__(
        self,
        dependents: Optional[List[DependentCollection]] = None,
        batch_size: Optional[int] = None,
        chunk_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        self.dependents = dependents if dependents is not None else [
            AttendanceRecordRepository(),
            SubmissionMarkerRepository(),
        ]
        self.batch_size = batch_size or settings.DELETION_BATCH_SIZE
        self.chunk_delay = settings.DELETION_CHUNK_DELAY_SECONDS if chunk_delay is None else chunk_delay
        self.sleep = sleep

    def estimate(self, db: Session, session_id: str) -> int:
        return sum(collection.count_for_session(db, session_id) for collection in self.dependents)

    def purge(
        self,
        db: Session,
        session_id: str,
        on_page: Optional[Callable[[int], None]] = None,
        pause: bool = True
    ) -> int:
        """
        Delete dependents until a pass removes nothing

        Args:
            db: Database session
            session_id: Session whose dependents are removed
            on_page: Called with the number deleted after every non-empty pass
            pause: Sleep chunk_delay between passes. Inline callers on the
                request path pass False.

        Returns:
            int: Total records deleted
        """
        total = 0
        while True:
            deleted = 0
            for collection in self.dependents:
                deleted += collection.delete_chunk_for_session(db, session_id, self.batch_size)
            if deleted == 0:
                return total

            total += deleted
            if on_page is not None:
                on_page(deleted)
            if pause and self.chunk_delay:
                self.sleep(self.chunk_delay)


class SessionDeletionService:
    def __init__(self, purger: Optional[SessionPurger] = None) -> None:
        self.session_repo = EventSessionRepository()
        self.job_repo = DeletionJobRepository()
        self.purger = purger or SessionPurger()

    @property
    def threshold(self) -> int:
        return self.purger.batch_size

    def delete_session(
        self,
        db: Session,
        session_id: str,
        current_user: Dict[str, Any],
        dispatcher: JobDispatcher
    ) -> DeletionResult:
        """
        Delete a session with everything that references it

        Args:
            db: Database session
            session_id: Session to delete
            current_user: Authenticated requester (user_id, role_level)
            dispatcher: Delivers DeletionJobCreated to the background worker

        Returns:
            DeletionResult: synchronous with deleted_count, or queued with job_id

        Raises:
            SessionNotFoundException: If session not found
            PermissionDeniedException: Requester is neither owner nor admin
        """
        session = self.session_repo.get_by_id(db, session_id)
        if session is None:
            raise SessionNotFoundException()
        if not can_manage(session.es_owner_id, current_user):
            raise PermissionDeniedException("Only the session owner or an admin can delete this session")

        estimate = self.purger.estimate(db, session_id)
        log_context = {'session_id': session_id, 'estimate': estimate, 'requested_by': current_user.get("user_id")}

        if estimate <= self.threshold:
            deleted = self.delete_synchronously(db, session_id)
            logger.info("Session deleted synchronously", extra={'extra_data': {**log_context, 'deleted': deleted}})
            return DeletionResult(mode=DeletionMode.SYNCHRONOUS, deleted_count=deleted)

        # No new check-ins while the job drains the session
        self.session_repo.update(db, session, {"es_is_active": False})
        job = self.job_repo.create(db, {
            "dj_id": str(uuid.uuid4()),
            "dj_session_id": session_id,
            "dj_requested_by": current_user.get("user_id"),
            "dj_status": JobStatus.PENDING.value,
            "dj_total_count": estimate,
            "dj_processed_count": 0,
            "dj_last_updated_at": utc_now()
        })
        dispatcher.dispatch(DeletionJobCreated(job_id=job.dj_id, session_id=session_id))

        logger.info("Session deletion queued", extra={'extra_data': {**log_context, 'job_id': job.dj_id}})
        return DeletionResult(mode=DeletionMode.QUEUED, job_id=job.dj_id)

    def delete_synchronously(self, db: Session, session_id: str) -> int:
        """Purge dependents then the session row. Safe to call repeatedly."""
        # On the request path: no pause between pages
        deleted = self.purger.purge(db, session_id, pause=False)
        self.session_repo.delete_by_id(db, session_id)
        return deleted

    def get_job(self, db: Session, job_id: str, current_user: Dict[str, Any]) -> DeletionJob:
        job = self.job_repo.get_by_id(db, job_id)
        if job is None:
            raise DeletionJobNotFoundException()
        if not (is_elevated(current_user) or job.dj_requested_by == current_user.get("user_id")):
            raise PermissionDeniedException()
        return DeletionJob.model_validate(job)

    def retry_job(
        self,
        db: Session,
        job_id: str,
        current_user: Dict[str, Any],
        dispatcher: JobDispatcher
    ) -> DeletionJob:
        """
        Re-trigger a failed job. The worker resumes from the stored processed count.

        Raises:
            DeletionJobNotFoundException: If job not found
            PermissionDeniedException: Requester is neither job owner nor admin
            JobStateConflictException: Job is not in the failed state
        """
        job = self.job_repo.get_by_id(db, job_id)
        if job is None:
            raise DeletionJobNotFoundException()
        if not (is_elevated(current_user) or job.dj_requested_by == current_user.get("user_id")):
            raise PermissionDeniedException()

        current = JobState.from_columns(job.dj_status, job.dj_error)
        if not current.status.can_transition_to(JobStatus.PENDING):
            raise JobStateConflictException(current.status.value)

        job = self.job_repo.set_state(db, job, JobState.pending())
        dispatcher.dispatch(DeletionJobCreated(job_id=job.dj_id, session_id=job.dj_session_id))

        logger.info(
            "Deletion job re-triggered",
            extra={'extra_data': {'job_id': job_id, 'processed_count': job.dj_processed_count}}
        )
        return DeletionJob.model_validate(job)
