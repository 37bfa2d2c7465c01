"""
Deletion Job Endpoints - Progress and operator re-trigger of background deletions
"""
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session, sessionmaker

from app.db.session import get_db, get_session_factory
from app.core.config import settings
from app.services.deletion_service import SessionDeletionService
from app.services.deletion_worker import BackgroundTaskDispatcher, DeletionWorker
from app.schemas import DataResponse, DeletionJob
from app.api.deps import require_auth
from atams.encryption import encrypt_response_data

router = APIRouter()
deletion_service = SessionDeletionService()


@router.get(
    "/{job_id}",
    response_model=DataResponse[DeletionJob],
    status_code=status.HTTP_200_OK
)
async def get_deletion_job(
    job_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get progress of a deletion job

    **Authorization:**
    - Requester of the job, or role level >= ADMIN_ROLE_LEVEL
    """
    job = deletion_service.get_job(db, job_id, current_user)

    response = DataResponse(
        success=True,
        message="Deletion job retrieved successfully",
        data=job
    )

    return encrypt_response_data(response, settings)


@router.post(
    "/{job_id}/retry",
    response_model=DataResponse[DeletionJob],
    status_code=status.HTTP_202_ACCEPTED
)
async def retry_deletion_job(
    job_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    current_user: dict = Depends(require_auth)
):
    """
    Re-trigger a failed deletion job

    **Authorization:**
    - Requester of the job, or role level >= ADMIN_ROLE_LEVEL

    **Use case:**
    - Jobs are never retried automatically; after fixing the cause of a
      failure, an operator resumes the job from its saved progress
    - Only `failed` jobs can be re-triggered (409 otherwise)
    """
    dispatcher = BackgroundTaskDispatcher(background_tasks, DeletionWorker(session_factory))
    job = deletion_service.retry_job(db, job_id, current_user, dispatcher)

    return DataResponse(
        success=True,
        message="Deletion job re-triggered",
        data=job
    )
