"""
Event Session Schemas for request/response validation
"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.clock import to_naive_utc
from app.core.enums import SessionKind


class GeoFence(BaseModel):
    """
    Circular geofence, radius in metres.

    Every field is optional: a fence missing any of them is stored as-is
    and simply not enforced.
    """
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius: Optional[float] = Field(None, gt=0)

    @property
    def is_enforceable(self) -> bool:
        return None not in (self.latitude, self.longitude, self.radius)


class EventSessionBase(BaseModel):
    es_name: str = Field(..., min_length=1, max_length=255)
    es_kind: SessionKind = SessionKind.SESSION
    es_is_active: bool = True
    es_valid_from: Optional[datetime] = None
    es_valid_until: Optional[datetime] = None
    es_geo_fence: Optional[GeoFence] = None
    es_form_fields: Optional[List[str]] = None

    @field_validator('es_valid_from', 'es_valid_until')
    @classmethod
    def normalize_timezone(cls, v):
        """Schedule is stored as naive UTC"""
        return to_naive_utc(v) if v is not None else v

    @model_validator(mode='after')
    def check_window(self):
        if self.es_valid_from and self.es_valid_until and self.es_valid_until <= self.es_valid_from:
            raise ValueError("es_valid_until must be after es_valid_from")
        return self


class EventSessionCreate(EventSessionBase):
    es_id: Optional[str] = Field(None, min_length=1, max_length=64)


class EventSessionUpdate(BaseModel):
    es_name: Optional[str] = Field(None, min_length=1, max_length=255)
    es_is_active: Optional[bool] = None
    es_valid_from: Optional[datetime] = None
    es_valid_until: Optional[datetime] = None
    es_geo_fence: Optional[GeoFence] = None
    es_form_fields: Optional[List[str]] = None

    @field_validator('es_valid_from', 'es_valid_until')
    @classmethod
    def normalize_timezone(cls, v):
        return to_naive_utc(v) if v is not None else v

    @model_validator(mode='after')
    def check_window(self):
        if self.es_valid_from and self.es_valid_until and self.es_valid_until <= self.es_valid_from:
            raise ValueError("es_valid_until must be after es_valid_from")
        return self


class EventSessionInDB(EventSessionBase):
    model_config = ConfigDict(from_attributes=True)

    es_id: str
    es_owner_id: int
    es_scan_count: int = 0
    es_created_at: datetime
    es_updated_at: Optional[datetime] = None

    @field_validator('es_updated_at', 'es_created_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        """
        Fix datetime timezone format from PostgreSQL
        PostgreSQL returns: '2025-10-01 09:17:39.587802+00'
        Pydantic expects: '2025-10-01 09:17:39.587802+00:00'
        """
        if v == '' or v is None:
            return None

        if isinstance(v, str):
            import re
            pattern = r'([+-]\d{2})$'
            match = re.search(pattern, v)
            if match:
                v = v + ':00'

        return v


class EventSession(EventSessionInDB):
    pass
