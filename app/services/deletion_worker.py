"""
Deletion Worker - Background consumer of DeletionJobCreated events
"""
from typing import Callable, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from atams.logging import get_logger
from app.core.enums import JobState, JobStatus
from app.repositories.deletion_job_repository import DeletionJobRepository
from app.repositories.event_session_repository import EventSessionRepository
from app.services.deletion_service import DeletionJobCreated, SessionPurger

logger = get_logger(__name__)


class DeletionWorker:
    """
    Drains one deletion job per event.

    Delivery may repeat, so a job is only processed after winning the
    pending -> processing claim. Progress is saved after every page and a
    re-triggered job continues counting from the saved value. Failures mark
    the job failed; nothing is retried automatically.
    """

    def __init__(self, session_factory: Callable[[], Session], purger: Optional[SessionPurger] = None) -> None:
        self.session_factory = session_factory
        self.purger = purger or SessionPurger()
        self.job_repo = DeletionJobRepository()
        self.session_repo = EventSessionRepository()

    def handle(self, event: DeletionJobCreated) -> None:
        self.process(event.job_id)

    def process(self, job_id: str) -> Optional[JobStatus]:
        """
        Run a job to completion

        Returns:
            Final status, the untouched status when the job was not pending,
            or None when the job does not exist
        """
        db = self.session_factory()
        try:
            return self._process(db, job_id)
        finally:
            db.close()

    def _process(self, db: Session, job_id: str) -> Optional[JobStatus]:
        job = self.job_repo.get_by_id(db, job_id)
        if job is None:
            logger.warning("Deletion job not found", extra={'extra_data': {'job_id': job_id}})
            return None

        if not self.job_repo.claim_pending(db, job_id):
            state = JobState.from_columns(job.dj_status, job.dj_error)
            logger.info(
                "Skipping deletion job that is not pending",
                extra={'extra_data': {'job_id': job_id, 'status': state.status.value, 'reason': state.reason}}
            )
            return state.status

        session_id = job.dj_session_id
        processed = job.dj_processed_count or 0

        def record_page(deleted: int) -> None:
            nonlocal processed
            processed += deleted
            self.job_repo.update_progress(db, job_id, processed)

        logger.info(
            "Deletion job started",
            extra={'extra_data': {'job_id': job_id, 'session_id': session_id, 'processed_count': processed}}
        )
        try:
            self.purger.purge(db, session_id, on_page=record_page)
            self.session_repo.delete_by_id(db, session_id)
            self.job_repo.set_state(db, job, JobState.completed(), processed_count=processed)
        except Exception as exc:
            db.rollback()
            logger.error(
                "Deletion job failed",
                exc_info=True,
                extra={'extra_data': {'job_id': job_id, 'session_id': session_id, 'processed_count': processed}}
            )
            self.job_repo.set_state(db, job, JobState.failed(str(exc)), processed_count=processed)
            return JobStatus.FAILED

        logger.info(
            "Deletion job completed",
            extra={'extra_data': {'job_id': job_id, 'session_id': session_id, 'processed_count': processed}}
        )
        return JobStatus.COMPLETED


class BackgroundTaskDispatcher:
    """Hands DeletionJobCreated events to FastAPI's post-response task runner"""

    def __init__(self, background_tasks: BackgroundTasks, worker: DeletionWorker) -> None:
        self.background_tasks = background_tasks
        self.worker = worker

    def dispatch(self, event: DeletionJobCreated) -> None:
        self.background_tasks.add_task(self.worker.handle, event)
