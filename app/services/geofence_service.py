"""
Geofence Service - Great-circle distance checks against circular fences
"""
import math
from typing import Optional

from app.schemas.attendance import GeoPoint
from app.schemas.event_session import GeoFence

EARTH_RADIUS_KM = 6371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two coordinates using Haversine formula

    Returns:
        float: Distance in kilometres
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) *
         math.sin(delta_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_m(point: GeoPoint, fence: GeoFence) -> float:
    """Distance from the point to the fence centre in metres"""
    return haversine_km(fence.latitude, fence.longitude, point.latitude, point.longitude) * 1000


def is_within_geofence(point: Optional[GeoPoint], fence: Optional[GeoFence]) -> bool:
    """
    Check a point against a fence.

    A missing fence, or one missing latitude, longitude or radius, imposes no
    constraint and always passes. Otherwise the point passes when its
    distance to the centre is at most the radius.
    """
    if fence is None or not fence.is_enforceable:
        return True
    if point is None:
        return False
    distance_km = haversine_km(fence.latitude, fence.longitude, point.latitude, point.longitude)
    return distance_km <= fence.radius / 1000
