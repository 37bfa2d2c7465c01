"""
Attendance Schemas for submissions and records
"""
from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import IdentitySource


class GeoPoint(BaseModel):
    """Position reported by the device"""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)


class DeviceSignals(BaseModel):
    """Low-entropy browser signals used for fingerprint soft-matching"""
    platform: Optional[str] = None
    language: Optional[str] = None
    screen: Optional[str] = None  # "1080x1920x24"
    timezone: Optional[str] = None
    canvas: Optional[str] = None  # rendering-surface sample
    hardware_concurrency: Optional[int] = None


# Request/Response schemas for API endpoints
class SubmissionRequest(BaseModel):
    """Request schema for the scan and check-in endpoints"""
    session_or_code_id: str = Field(..., min_length=1, max_length=64)
    form_answers: Optional[Dict[str, Any]] = None
    capture_location: bool = False
    location: Optional[GeoPoint] = None
    member_id: Optional[str] = Field(None, max_length=255)
    device: Optional[DeviceSignals] = None


class AttendanceRecordInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    ar_id: int
    ar_session_id: str
    ar_device_id: str
    ar_member_id: Optional[str] = None
    ar_lat: Optional[float] = None
    ar_lon: Optional[float] = None
    ar_accuracy: Optional[float] = None
    ar_location_captured_at: Optional[datetime] = None
    ar_form_answers: Optional[Dict[str, Any]] = None
    ar_status: str
    ar_checked_in_at: datetime


class AttendanceRecord(AttendanceRecordInDB):
    pass


class SubmissionResponse(BaseModel):
    """Response schema for an accepted submission"""
    record: AttendanceRecord
    device_token: str  # client keeps this in local storage
    identity_source: IdentitySource
    message: str
