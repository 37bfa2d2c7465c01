"""
Attendance Record Repository - Data access layer for accepted check-ins
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import or_

from atams.db import BaseRepository
from app.models.attendance_record import AttendanceRecord


class AttendanceRecordRepository(BaseRepository[AttendanceRecord]):
    def __init__(self):
        super().__init__(AttendanceRecord)

    def add_record(self, db: Session, record_data: dict) -> AttendanceRecord:
        """Stage a record in the current transaction and flush to obtain its id"""
        db_record = AttendanceRecord(**record_data)
        db.add(db_record)
        db.flush()
        return db_record

    def get_latest_for_identity(
        self,
        db: Session,
        session_id: str,
        device_id: str,
        member_id: Optional[str] = None,
        since: Optional[datetime] = None
    ) -> Optional[AttendanceRecord]:
        """Most recent record in a session from this device or member"""
        identity = AttendanceRecord.ar_device_id == device_id
        if member_id:
            identity = or_(identity, AttendanceRecord.ar_member_id == member_id)

        query = db.query(AttendanceRecord).filter(
            AttendanceRecord.ar_session_id == session_id,
            identity
        )
        if since is not None:
            query = query.filter(AttendanceRecord.ar_checked_in_at > since)

        return query.order_by(AttendanceRecord.ar_checked_in_at.desc()).first()

    def get_session_records(
        self,
        db: Session,
        session_id: str,
        skip: int = 0,
        limit: int = 100
    ) -> List[AttendanceRecord]:
        """Get records of a session, newest first"""
        return db.query(AttendanceRecord).filter(
            AttendanceRecord.ar_session_id == session_id
        ).order_by(AttendanceRecord.ar_checked_in_at.desc()).offset(skip).limit(limit).all()

    def count_for_session(self, db: Session, session_id: str) -> int:
        """Count records of a session using native SQL"""
        query = "SELECT COUNT(*) FROM attendance_records WHERE ar_session_id = :session_id"
        return self.execute_raw_sql_scalar(db, query, {"session_id": session_id})

    def delete_chunk_for_session(self, db: Session, session_id: str, limit: int) -> int:
        """Delete up to `limit` records still referencing the session"""
        rows = db.query(AttendanceRecord.ar_id).filter(
            AttendanceRecord.ar_session_id == session_id
        ).limit(limit).all()
        if not rows:
            return 0
        return self.delete_many(db, [row.ar_id for row in rows])
