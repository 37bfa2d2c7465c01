"""
Attendance Endpoints - Anonymous code scans and session check-ins
"""
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.config import settings
from app.core.enums import SubmissionMode
from app.services.attendance_service import AttendanceService, SubmissionResult
from app.services.device_identity_service import DeviceContext
from app.services.device_token_service import DeviceTokenService
from app.schemas import DataResponse, SubmissionRequest, SubmissionResponse

router = APIRouter()
attendance_service = AttendanceService()
device_token_service = DeviceTokenService()


def _device_context(request: Request, payload: SubmissionRequest) -> DeviceContext:
    return DeviceContext(
        cookie_value=request.cookies.get(settings.DEVICE_COOKIE_NAME),
        local_token=request.headers.get(settings.DEVICE_TOKEN_HEADER),
        user_agent=request.headers.get("user-agent", ""),
        signals=payload.device
    )


def _respond(response: Response, result: SubmissionResult) -> DataResponse[SubmissionResponse]:
    # Cookie tier; the body token is what the client keeps in local storage
    response.set_cookie(
        key=settings.DEVICE_COOKIE_NAME,
        value=device_token_service.encode_cookie(result.device.device_id),
        max_age=settings.DEVICE_COOKIE_MAX_AGE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.DEVICE_COOKIE_SECURE,
        samesite=settings.DEVICE_COOKIE_SAMESITE
    )
    checked_in_at = result.record.ar_checked_in_at
    return DataResponse(
        success=True,
        message="Attendance recorded",
        data=SubmissionResponse(
            record=result.record,
            device_token=result.device.device_id,
            identity_source=result.device.source,
            message=f"Present ✔ {checked_in_at.strftime('%H:%M')} UTC"
        )
    )


@router.post(
    "/scan",
    response_model=DataResponse[SubmissionResponse],
    status_code=status.HTTP_201_CREATED
)
async def scan_code(
    payload: SubmissionRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Submit attendance by scanning a code

    **Authentication:** none, the device is identified by cookie,
    `X-Device-Token` header or fingerprint signals.

    **Rules:**
    - One submission per device per code, forever
    - Code must be active and inside its validity window
    - Location is required when the code has a geofence

    **Errors** carry `details.code`: NOT_FOUND, INACTIVE, NOT_YET_VALID,
    EXPIRED, INVALID_FORM, DUPLICATE_SUBMISSION, LOCATION_REQUIRED,
    OUTSIDE_GEOFENCE.
    """
    result = attendance_service.submit(
        db,
        payload,
        _device_context(request, payload),
        mode=SubmissionMode.ONE_TIME
    )
    return _respond(response, result)


@router.post(
    "/checkin",
    response_model=DataResponse[SubmissionResponse],
    status_code=status.HTTP_201_CREATED
)
async def check_in(
    payload: SubmissionRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
):
    """
    Check in to a session through its link

    **Authentication:** none, same device identification as `/scan`.

    **Rules:**
    - One check-in per device (or member) per session within
      RESUBMIT_COOLDOWN_HOURS; TOO_SOON reports `retry_after_seconds`
    - Same schedule, form and geofence gates as `/scan`
    """
    result = attendance_service.submit(
        db,
        payload,
        _device_context(request, payload),
        mode=SubmissionMode.COOLDOWN
    )
    return _respond(response, result)
