"""
Deletion Job Repository - Data access layer for background deletion jobs
"""
from typing import Optional
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from app.core.clock import utc_now
from app.core.enums import JobState, JobStatus
from app.models.deletion_job import DeletionJob


class DeletionJobRepository(BaseRepository[DeletionJob]):
    def __init__(self):
        super().__init__(DeletionJob)

    def get_by_id(self, db: Session, job_id: str) -> Optional[DeletionJob]:
        return db.query(DeletionJob).filter(DeletionJob.dj_id == job_id).first()

    def claim_pending(self, db: Session, job_id: str) -> bool:
        """
        Move a job from pending to processing.

        Compare-and-set on the status column, so only one delivery of the
        trigger wins. Returns False when the job is not pending.
        """
        claimed = JobState.processing()
        updated = db.query(DeletionJob).filter(
            DeletionJob.dj_id == job_id,
            DeletionJob.dj_status == JobStatus.PENDING.value
        ).update(
            {
                DeletionJob.dj_status: claimed.status.value,
                DeletionJob.dj_error: claimed.reason,
                DeletionJob.dj_last_updated_at: utc_now()
            },
            synchronize_session=False
        )
        db.commit()
        return updated == 1

    def update_progress(self, db: Session, job_id: str, processed_count: int) -> None:
        db.query(DeletionJob).filter(DeletionJob.dj_id == job_id).update(
            {
                DeletionJob.dj_processed_count: processed_count,
                DeletionJob.dj_last_updated_at: utc_now()
            },
            synchronize_session=False
        )
        db.commit()

    def set_state(
        self,
        db: Session,
        job: DeletionJob,
        state: JobState,
        processed_count: Optional[int] = None
    ) -> DeletionJob:
        """Apply a state transition, rejecting ones the state machine forbids"""
        current = JobStatus(job.dj_status)
        if not current.can_transition_to(state.status):
            raise ValueError(f"Illegal job transition {current.value} -> {state.status.value}")

        update_data = {
            "dj_status": state.status.value,
            "dj_error": state.reason,
            "dj_last_updated_at": utc_now()
        }
        if processed_count is not None:
            update_data["dj_processed_count"] = processed_count
        return self.update(db, job, update_data)
