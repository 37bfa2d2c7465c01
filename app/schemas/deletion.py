"""
Deletion Schemas for cascading session deletion and its jobs
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from app.core.enums import DeletionMode, JobStatus


class DeletionResult(BaseModel):
    """Either {mode: synchronous, deleted_count} or {mode: queued, job_id}"""
    mode: DeletionMode
    deleted_count: Optional[int] = None
    job_id: Optional[str] = None


class DeletionJobInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    dj_id: str
    dj_session_id: str
    dj_requested_by: int
    dj_status: JobStatus
    dj_total_count: int
    dj_processed_count: int
    dj_error: Optional[str] = None
    dj_created_at: datetime
    dj_last_updated_at: Optional[datetime] = None


class DeletionJob(DeletionJobInDB):
    pass
