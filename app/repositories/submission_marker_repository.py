"""
Submission Marker Repository - Data access layer for duplicate markers
"""
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from app.models.submission_marker import SubmissionMarker


class SubmissionMarkerRepository(BaseRepository[SubmissionMarker]):
    def __init__(self):
        super().__init__(SubmissionMarker)

    @staticmethod
    def build_key(scope_id: str, device_id: str) -> str:
        return f"{scope_id}_{device_id}"

    def marker_exists(self, db: Session, key: str) -> bool:
        return self.exists(db, key)

    def add_marker(self, db: Session, scope_id: str, device_id: str) -> SubmissionMarker:
        """
        Insert a marker in the current transaction without committing.

        The primary key is the composite key, so a second insert for the same
        (scope, device) fails here with IntegrityError.
        """
        marker = SubmissionMarker(
            sm_key=self.build_key(scope_id, device_id),
            sm_session_id=scope_id,
            sm_device_id=device_id
        )
        db.add(marker)
        db.flush()
        return marker

    def count_for_session(self, db: Session, session_id: str) -> int:
        query = "SELECT COUNT(*) FROM submission_markers WHERE sm_session_id = :session_id"
        return self.execute_raw_sql_scalar(db, query, {"session_id": session_id})

    def delete_chunk_for_session(self, db: Session, session_id: str, limit: int) -> int:
        """Delete up to `limit` markers still referencing the session"""
        rows = db.query(SubmissionMarker.sm_key).filter(
            SubmissionMarker.sm_session_id == session_id
        ).limit(limit).all()
        if not rows:
            return 0
        return self.delete_many(db, [row.sm_key for row in rows])
