"""
Attendance Record Model - One row per accepted check-in
"""
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, Float, JSON, ForeignKey
from sqlalchemy.sql import func
from atams.db import Base


class AttendanceRecord(Base):
    """Attendance record model - Table: attendance_records"""
    __tablename__ = "attendance_records"

    ar_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True, autoincrement=True)
    ar_session_id = Column(String(64), ForeignKey("event_sessions.es_id"), nullable=False, index=True)
    ar_device_id = Column(String(255), nullable=False, index=True)
    ar_member_id = Column(String(255), nullable=True, index=True)
    ar_lat = Column(Float, nullable=True)
    ar_lon = Column(Float, nullable=True)
    ar_accuracy = Column(Float, nullable=True)  # metres, as reported by the device
    ar_location_captured_at = Column(DateTime, nullable=True)
    ar_form_answers = Column(JSON, nullable=True)
    ar_status = Column(String(20), nullable=False, default="present")
    ar_checked_in_at = Column(DateTime, nullable=False, index=True)
    ar_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
