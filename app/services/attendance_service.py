"""
Attendance Service - Main business logic for attendance submissions
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from atams.logging import get_logger
from atams.transaction import transaction
from app.core.clock import utc_now
from app.core.config import settings
from app.core.enums import AttendanceStatus, SubmissionMode
from app.core.exceptions import (
    DuplicateSubmissionException,
    ExpiredException,
    InactiveException,
    InternalException,
    InvalidFormException,
    LocationRequiredException,
    NotYetValidException,
    OutsideGeofenceException,
    SessionNotFoundException,
    TooSoonException,
)
from app.models.event_session import EventSession
from app.repositories.attendance_record_repository import AttendanceRecordRepository
from app.repositories.device_binding_repository import DeviceBindingRepository
from app.repositories.event_session_repository import EventSessionRepository
from app.schemas.attendance import AttendanceRecord, GeoPoint, SubmissionRequest
from app.schemas.event_session import GeoFence
from app.services.device_identity_service import DeviceContext, DeviceIdentityResolver, ResolvedDevice
from app.services.geofence_service import distance_m, is_within_geofence
from app.services.submission_guard_service import SubmissionGuardService

logger = get_logger(__name__)


class LocationUnavailableError(Exception):
    """The device could not or would not report a position"""


class GeolocationProvider(Protocol):
    def get_current_position(self) -> Optional[GeoPoint]:
        ...


class ReportedLocationProvider:
    """Position the client measured and attached to the request"""

    def __init__(self, location: Optional[GeoPoint]) -> None:
        self.location = location

    def get_current_position(self) -> Optional[GeoPoint]:
        return self.location


@dataclass(frozen=True)
class SubmissionResult:
    record: AttendanceRecord
    device: ResolvedDevice


class AttendanceService:
    def __init__(
        self,
        resolver: Optional[DeviceIdentityResolver] = None,
        cooldown: Optional[timedelta] = None
    ) -> None:
        self.session_repo = EventSessionRepository()
        self.record_repo = AttendanceRecordRepository()
        self.binding_repo = DeviceBindingRepository()
        self.guard = SubmissionGuardService()
        self.resolver = resolver or DeviceIdentityResolver()
        self.cooldown = cooldown if cooldown is not None else timedelta(hours=settings.RESUBMIT_COOLDOWN_HOURS)

    def submit(
        self,
        db: Session,
        request: SubmissionRequest,
        device_context: DeviceContext,
        mode: SubmissionMode,
        location_provider: Optional[GeolocationProvider] = None,
        now: Optional[datetime] = None
    ) -> SubmissionResult:
        """
        Process an attendance submission with full validation

        Args:
            db: Database session
            request: Submission payload
            device_context: Cookie, local token and fingerprint signals
            mode: ONE_TIME for code scans, COOLDOWN for session check-ins
            location_provider: Source of the device position, defaults to
                the location reported in the request
            now: Submission time, naive UTC

        Returns:
            SubmissionResult: Created record and resolved device

        Raises:
            SessionNotFoundException: Unknown session or code
            InactiveException, NotYetValidException, ExpiredException: Schedule gates
            InvalidFormException: Required form fields missing
            DuplicateSubmissionException: Device already submitted (ONE_TIME)
            LocationRequiredException, OutsideGeofenceException: Geofence gates
            TooSoonException: Device still inside its cooldown (COOLDOWN)
            InternalException: Store failure while writing
        """
        now = now or utc_now()

        # 1. Load session or code
        session = self.session_repo.get_by_id(db, request.session_or_code_id)
        if session is None:
            raise SessionNotFoundException()

        # 2. Active flag, validity window, required fields
        self._validate_schedule(session, now)
        self._validate_form(session, request.form_answers)

        # 3. Device identity, and the member already linked to it
        device = self.resolver.resolve(db, device_context)
        member_id = request.member_id or self.binding_repo.get_member_id(db, device.device_id)

        # 4. One-time duplicate marker
        if mode is SubmissionMode.ONE_TIME:
            check = self.guard.check_and_reserve(db, session.es_id, device.device_id)
            if check.already_submitted:
                logger.info(
                    "Duplicate submission rejected",
                    extra={'extra_data': {'session_id': session.es_id, 'device_id': device.device_id}}
                )
                raise DuplicateSubmissionException()

        # 5. Location and geofence
        location = self._acquire_location(session, request, location_provider)

        # 6. Rolling re-submission cooldown
        if mode is SubmissionMode.COOLDOWN:
            self._enforce_cooldown(db, session.es_id, device.device_id, member_id, now)

        # 7. Marker, record, binding and counter in one transaction
        record = self._write_submission(db, session, request, device, member_id, location, mode, now)

        logger.info(
            "Attendance recorded",
            extra={'extra_data': {
                'session_id': session.es_id,
                'device_id': device.device_id,
                'record_id': record.ar_id,
                'identity_source': device.source.value,
                'mode': mode.value
            }}
        )
        return SubmissionResult(record=AttendanceRecord.model_validate(record), device=device)

    def _validate_schedule(self, session: EventSession, now: datetime) -> None:
        if not session.es_is_active:
            raise InactiveException()
        if session.es_valid_from and now < session.es_valid_from:
            raise NotYetValidException(session.es_valid_from)
        if session.es_valid_until and now > session.es_valid_until:
            raise ExpiredException(session.es_valid_until)

    def _validate_form(self, session: EventSession, answers: Optional[Dict[str, Any]]) -> None:
        answers = answers or {}
        missing: List[str] = []
        for name in session.es_form_fields or []:
            value = answers.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        if missing:
            raise InvalidFormException(missing)

    def _acquire_location(
        self,
        session: EventSession,
        request: SubmissionRequest,
        location_provider: Optional[GeolocationProvider]
    ) -> Optional[GeoPoint]:
        """
        Get the device position when it is wanted or a fence needs it

        Raises:
            LocationRequiredException: Fence configured but no position
            OutsideGeofenceException: Position outside the fence
        """
        fence = GeoFence.model_validate(session.es_geo_fence) if session.es_geo_fence else None
        fence_enforced = fence is not None and fence.is_enforceable
        if not (request.capture_location or fence_enforced):
            return None

        provider = location_provider or ReportedLocationProvider(request.location)
        try:
            location = provider.get_current_position()
        except LocationUnavailableError:
            location = None

        if location is None:
            if fence_enforced:
                raise LocationRequiredException()
            return None

        if not is_within_geofence(location, fence):
            raise OutsideGeofenceException(distance_m(location, fence), fence.radius)
        return location

    def _enforce_cooldown(
        self,
        db: Session,
        session_id: str,
        device_id: str,
        member_id: Optional[str],
        now: datetime
    ) -> None:
        latest = self.record_repo.get_latest_for_identity(
            db, session_id, device_id, member_id, since=now - self.cooldown
        )
        if latest is None:
            return
        remaining = latest.ar_checked_in_at + self.cooldown - now
        raise TooSoonException(max(1, math.ceil(remaining.total_seconds())))

    def _write_submission(
        self,
        db: Session,
        session: EventSession,
        request: SubmissionRequest,
        device: ResolvedDevice,
        member_id: Optional[str],
        location: Optional[GeoPoint],
        mode: SubmissionMode,
        now: datetime
    ):
        record_data = {
            "ar_session_id": session.es_id,
            "ar_device_id": device.device_id,
            "ar_member_id": member_id,
            "ar_form_answers": request.form_answers,
            "ar_status": AttendanceStatus.PRESENT.value,
            "ar_checked_in_at": now
        }
        if location is not None:
            record_data.update({
                "ar_lat": location.latitude,
                "ar_lon": location.longitude,
                "ar_accuracy": location.accuracy,
                "ar_location_captured_at": now
            })

        try:
            with transaction(db):
                if mode is SubmissionMode.ONE_TIME:
                    self._stage_marker(db, session.es_id, device.device_id)
                record = self.record_repo.add_record(db, record_data)
                self.binding_repo.stage_link(db, device.device_id, device.fingerprint, member_id, now)
                self.session_repo.increment_scan_count(db, session.es_id)
        except SQLAlchemyError:
            logger.error(
                "Failed to write attendance submission",
                exc_info=True,
                extra={'extra_data': {'session_id': session.es_id, 'device_id': device.device_id}}
            )
            raise InternalException("Failed to record attendance")

        db.refresh(record)
        return record

    def _stage_marker(self, db: Session, session_id: str, device_id: str) -> None:
        try:
            self.guard.stage_marker(db, session_id, device_id)
        except IntegrityError:
            # Lost the race against a concurrent submission for the same marker
            logger.info(
                "Concurrent duplicate submission rejected",
                extra={'extra_data': {'session_id': session_id, 'device_id': device_id}}
            )
            raise DuplicateSubmissionException()
