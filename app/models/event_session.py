"""
Event Session Model - Check-in links and scannable codes
"""
from sqlalchemy import Column, BigInteger, Boolean, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from atams.db import Base


class EventSession(Base):
    """Event session model - Table: event_sessions"""
    __tablename__ = "event_sessions"

    es_id = Column(String(64), primary_key=True, index=True)
    es_name = Column(String(255), nullable=False)
    es_kind = Column(String(10), nullable=False, default="session")  # 'session' or 'code'
    es_is_active = Column(Boolean, nullable=False, default=True)
    es_valid_from = Column(DateTime, nullable=True)
    es_valid_until = Column(DateTime, nullable=True)
    es_geo_fence = Column(JSON, nullable=True)  # {"latitude": -6.2, "longitude": 106.8, "radius": 150}
    es_form_fields = Column(JSON, nullable=True)  # ["name", "email"]
    es_owner_id = Column(BigInteger, nullable=False, index=True)  # Atlas SSO user id
    es_scan_count = Column(Integer, nullable=False, default=0)
    es_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    es_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
