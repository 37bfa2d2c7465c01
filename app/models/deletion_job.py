"""
Deletion Job Model - Progress of a background cascading deletion
"""
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, Text
from sqlalchemy.sql import func
from atams.db import Base


class DeletionJob(Base):
    """Deletion job model - Table: deletion_jobs"""
    __tablename__ = "deletion_jobs"

    dj_id = Column(String(36), primary_key=True, index=True)  # uuid4
    dj_session_id = Column(String(64), nullable=False, index=True)  # no FK, the session is deleted last
    dj_requested_by = Column(BigInteger, nullable=False)
    dj_status = Column(String(20), nullable=False, default="pending")
    dj_total_count = Column(Integer, nullable=False, default=0)
    dj_processed_count = Column(Integer, nullable=False, default=0)
    dj_error = Column(Text, nullable=True)
    dj_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    dj_last_updated_at = Column(DateTime, nullable=True)
