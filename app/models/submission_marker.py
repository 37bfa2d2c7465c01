"""
Submission Marker Model - Existence means "this device already submitted"
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from atams.db import Base


class SubmissionMarker(Base):
    """Submission marker model - Table: submission_markers"""
    __tablename__ = "submission_markers"

    sm_key = Column(String(330), primary_key=True)  # "{scope_id}_{device_id}"
    sm_session_id = Column(String(64), ForeignKey("event_sessions.es_id"), nullable=False, index=True)
    sm_device_id = Column(String(255), nullable=False)
    sm_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
