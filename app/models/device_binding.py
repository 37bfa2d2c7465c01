"""
Device Binding Model - Links a device token to its fingerprint and submitter
"""
from sqlalchemy import Column, Boolean, String, DateTime
from sqlalchemy.sql import func
from atams.db import Base


class DeviceBinding(Base):
    """Device binding model - Table: device_bindings"""
    __tablename__ = "device_bindings"

    dv_token = Column(String(255), primary_key=True, index=True)
    dv_fingerprint = Column(String(128), nullable=True, index=True)
    dv_member_id = Column(String(255), nullable=True)
    dv_is_active = Column(Boolean, nullable=False, default=True)
    dv_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    dv_linked_at = Column(DateTime, nullable=True)
