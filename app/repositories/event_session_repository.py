"""
Event Session Repository - Data access layer for sessions and codes
"""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import text

from atams.db import BaseRepository
from app.models.event_session import EventSession


class EventSessionRepository(BaseRepository[EventSession]):
    def __init__(self):
        super().__init__(EventSession)

    def get_by_id(self, db: Session, es_id: str) -> Optional[EventSession]:
        """Get session by ID using ORM"""
        return db.query(EventSession).filter(EventSession.es_id == es_id).first()

    def get_sessions_with_search(
        self,
        db: Session,
        search: str = "",
        owner_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[EventSession]:
        """Get sessions with optional name search and owner filter using ORM"""
        query = db.query(EventSession)

        if search:
            query = query.filter(EventSession.es_name.ilike(f"%{search}%"))
        if owner_id is not None:
            query = query.filter(EventSession.es_owner_id == owner_id)

        return query.order_by(EventSession.es_created_at.desc()).offset(skip).limit(limit).all()

    def count_sessions_with_search(self, db: Session, search: str = "", owner_id: Optional[int] = None) -> int:
        """Count sessions with optional filters using native SQL"""
        query = "SELECT COUNT(*) FROM event_sessions WHERE 1 = 1"
        params = {}
        if search:
            query += " AND LOWER(es_name) LIKE :search"
            params["search"] = f"%{search.lower()}%"
        if owner_id is not None:
            query += " AND es_owner_id = :owner_id"
            params["owner_id"] = owner_id
        return self.execute_raw_sql_scalar(db, query, params)

    def check_session_exists(self, db: Session, es_id: str) -> bool:
        """Check if session exists using native SQL"""
        query = "SELECT 1 FROM event_sessions WHERE es_id = :es_id LIMIT 1"
        result = self.execute_raw_sql_scalar(db, query, {"es_id": es_id})
        return result is not None

    def increment_scan_count(self, db: Session, es_id: str) -> None:
        """
        Atomically bump the denormalised scan counter.

        Runs inside the caller's transaction and does not commit.
        """
        db.execute(
            text("UPDATE event_sessions SET es_scan_count = es_scan_count + 1 WHERE es_id = :es_id"),
            {"es_id": es_id}
        )

    def delete_by_id(self, db: Session, es_id: str) -> bool:
        """Delete session by ID and return success status"""
        session = self.get_by_id(db, es_id)
        if session:
            db.delete(session)
            db.commit()
            return True
        return False
