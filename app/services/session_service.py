"""
Session Service - Business logic for session and code management
"""
import uuid
from typing import Any, Dict, List
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidScheduleException, PermissionDeniedException, SessionNotFoundException
from app.core.permissions import can_manage
from app.models.event_session import EventSession as EventSessionModel
from app.repositories.attendance_record_repository import AttendanceRecordRepository
from app.repositories.event_session_repository import EventSessionRepository
from app.schemas.attendance import AttendanceRecord
from app.schemas.event_session import EventSession, EventSessionCreate, EventSessionUpdate
from atams.exceptions import ConflictException


class SessionService:
    def __init__(self) -> None:
        self.repo = EventSessionRepository()
        self.record_repo = AttendanceRecordRepository()

    def list_sessions(self, db: Session, search: str = "", skip: int = 0, limit: int = 100) -> List[EventSession]:
        sessions = self.repo.get_sessions_with_search(db, search=search, skip=skip, limit=limit)
        return [EventSession.model_validate(s) for s in sessions]

    def count_sessions(self, db: Session, search: str = "") -> int:
        return self.repo.count_sessions_with_search(db, search=search)

    def get_session(self, db: Session, es_id: str, current_user: Dict[str, Any]) -> EventSession:
        return EventSession.model_validate(self._get_managed(db, es_id, current_user))

    def create_session(self, db: Session, payload: EventSessionCreate, current_user: Dict[str, Any]) -> EventSession:
        es_id = payload.es_id or uuid.uuid4().hex[:16]
        if self.repo.check_session_exists(db, es_id):
            raise ConflictException("Session with this ID already exists")

        obj = self.repo.create(db, {
            "es_id": es_id,
            "es_name": payload.es_name,
            "es_kind": payload.es_kind.value,
            "es_is_active": payload.es_is_active,
            "es_valid_from": payload.es_valid_from,
            "es_valid_until": payload.es_valid_until,
            "es_geo_fence": payload.es_geo_fence.model_dump() if payload.es_geo_fence else None,
            "es_form_fields": payload.es_form_fields,
            "es_owner_id": current_user["user_id"],
            "es_scan_count": 0,
        })
        return EventSession.model_validate(obj)

    def update_session(
        self,
        db: Session,
        es_id: str,
        payload: EventSessionUpdate,
        current_user: Dict[str, Any]
    ) -> EventSession:
        obj = self._get_managed(db, es_id, current_user)
        update_data = payload.model_dump(exclude_unset=True)
        if update_data.get("es_geo_fence") is not None:
            update_data["es_geo_fence"] = payload.es_geo_fence.model_dump()

        # Only one bound may change, so check against the stored other one
        valid_from = update_data.get("es_valid_from", obj.es_valid_from)
        valid_until = update_data.get("es_valid_until", obj.es_valid_until)
        if valid_from and valid_until and valid_until <= valid_from:
            raise InvalidScheduleException(valid_from, valid_until)

        obj = self.repo.update(db, obj, update_data)
        return EventSession.model_validate(obj)

    def list_records(
        self,
        db: Session,
        es_id: str,
        current_user: Dict[str, Any],
        skip: int = 0,
        limit: int = 100
    ) -> List[AttendanceRecord]:
        """Attendance records of a session, newest first"""
        self._get_managed(db, es_id, current_user)
        records = self.record_repo.get_session_records(db, es_id, skip=skip, limit=limit)
        return [AttendanceRecord.model_validate(r) for r in records]

    def count_records(self, db: Session, es_id: str) -> int:
        return self.record_repo.count_for_session(db, es_id)

    def _get_managed(self, db: Session, es_id: str, current_user: Dict[str, Any]) -> EventSessionModel:
        obj = self.repo.get_by_id(db, es_id)
        if not obj:
            raise SessionNotFoundException()
        if not can_manage(obj.es_owner_id, current_user):
            raise PermissionDeniedException()
        return obj
