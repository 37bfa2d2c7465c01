"""
Sessions Endpoints - Session management and cascading deletion
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from sqlalchemy.orm import Session, sessionmaker

from app.db.session import get_db, get_session_factory
from app.core.config import settings
from app.core.enums import DeletionMode
from app.services.session_service import SessionService
from app.services.deletion_service import SessionDeletionService
from app.services.deletion_worker import BackgroundTaskDispatcher, DeletionWorker
from app.schemas import (
    AttendanceRecord,
    DataResponse,
    DeletionResult,
    EventSession,
    EventSessionCreate,
    EventSessionUpdate,
    PaginationResponse
)
from app.api.deps import require_auth, require_min_role_level
from atams.encryption import encrypt_response_data

router = APIRouter()
session_service = SessionService()
deletion_service = SessionDeletionService()


@router.get(
    "/",
    response_model=PaginationResponse[EventSession],
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_min_role_level(settings.ADMIN_ROLE_LEVEL))]
)
async def list_sessions(
    search: str = Query("", description="Search sessions by name"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    db: Session = Depends(get_db)
):
    """
    Get list of sessions and codes with pagination and search

    **Authorization:**
    - Requires role level >= ADMIN_ROLE_LEVEL
    """
    sessions = session_service.list_sessions(db, search=search, skip=skip, limit=limit)
    total = session_service.count_sessions(db, search=search)

    response = PaginationResponse(
        success=True,
        message="Sessions retrieved successfully",
        data=sessions,
        total=total,
        page=skip // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/{es_id}",
    response_model=DataResponse[EventSession],
    status_code=status.HTTP_200_OK
)
async def get_session(
    es_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get single session by ID

    **Authorization:**
    - Session owner, or role level >= ADMIN_ROLE_LEVEL
    """
    session = session_service.get_session(db, es_id, current_user)

    response = DataResponse(
        success=True,
        message="Session retrieved successfully",
        data=session
    )

    return encrypt_response_data(response, settings)


@router.post(
    "/",
    response_model=DataResponse[EventSession],
    status_code=status.HTTP_201_CREATED
)
async def create_session(
    payload: EventSessionCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Create a session (check-in link) or a code

    **Authorization:**
    - Any authenticated user; the caller becomes the owner

    **Validation:**
    - es_id: optional, generated when omitted, unique, max 64 characters
    - es_valid_until must be after es_valid_from
    - es_geo_fence is only enforced when latitude, longitude and radius are all set
    """
    new_session = session_service.create_session(db, payload, current_user)

    return DataResponse(
        success=True,
        message="Session created successfully",
        data=new_session
    )


@router.put(
    "/{es_id}",
    response_model=DataResponse[EventSession],
    status_code=status.HTTP_200_OK
)
async def update_session(
    es_id: str,
    payload: EventSessionUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Update an existing session

    **Authorization:**
    - Session owner, or role level >= ADMIN_ROLE_LEVEL

    **Updateable fields:**
    - es_name, es_is_active, es_valid_from, es_valid_until, es_geo_fence, es_form_fields
    """
    updated = session_service.update_session(db, es_id, payload, current_user)

    return DataResponse(
        success=True,
        message="Session updated successfully",
        data=updated
    )


@router.get(
    "/{es_id}/records",
    response_model=PaginationResponse[AttendanceRecord],
    status_code=status.HTTP_200_OK
)
async def list_session_records(
    es_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_auth)
):
    """
    Get attendance records of a session, newest first

    **Authorization:**
    - Session owner, or role level >= ADMIN_ROLE_LEVEL
    """
    records = session_service.list_records(db, es_id, current_user, skip=skip, limit=limit)
    total = session_service.count_records(db, es_id)

    response = PaginationResponse(
        success=True,
        message="Attendance records retrieved successfully",
        data=records,
        total=total,
        page=skip // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.delete(
    "/{es_id}",
    response_model=DataResponse[DeletionResult],
    status_code=status.HTTP_200_OK
)
async def delete_session(
    es_id: str,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    current_user: dict = Depends(require_auth)
):
    """
    Delete a session and every record that references it

    **Authorization:**
    - Session owner, or role level >= ADMIN_ROLE_LEVEL

    **Behaviour:**
    - Up to DELETION_BATCH_SIZE dependent records: deleted inline,
      200 with `{mode: "synchronous", deleted_count}`
    - More: 202 with `{mode: "queued", job_id}`; the session is deactivated
      and a background job drains it. Poll `/deletion-jobs/{job_id}`.
    """
    dispatcher = BackgroundTaskDispatcher(background_tasks, DeletionWorker(session_factory))
    result = deletion_service.delete_session(db, es_id, current_user, dispatcher)

    if result.mode is DeletionMode.QUEUED:
        response.status_code = status.HTTP_202_ACCEPTED
        message = "Session deletion queued"
    else:
        message = f"Session deleted with {result.deleted_count} dependent records"

    return DataResponse(
        success=True,
        message=message,
        data=result
    )
