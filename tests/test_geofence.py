import math

import pytest

from app.schemas import GeoFence, GeoPoint
from app.services.geofence_service import distance_m, haversine_km, is_within_geofence

CENTER = GeoPoint(latitude=-6.2088, longitude=106.8456)


def _north_of(point: GeoPoint, metres: float) -> GeoPoint:
    return GeoPoint(
        latitude=point.latitude + math.degrees(metres / 6_371_000),
        longitude=point.longitude,
    )


@pytest.mark.parametrize(
    "fence",
    [
        None,
        GeoFence(),
        GeoFence(latitude=-6.2, longitude=106.8),
        GeoFence(latitude=-6.2, radius=100),
        GeoFence(longitude=106.8, radius=100),
    ],
)
def test_incomplete_fence_imposes_no_constraint(fence):
    far_away = GeoPoint(latitude=51.5, longitude=-0.12)
    assert is_within_geofence(far_away, fence) is True
    assert is_within_geofence(None, fence) is True


def test_distance_to_same_point_is_zero():
    assert haversine_km(CENTER.latitude, CENTER.longitude, CENTER.latitude, CENTER.longitude) == 0
    fence = GeoFence(latitude=CENTER.latitude, longitude=CENTER.longitude, radius=1)
    assert is_within_geofence(CENTER, fence) is True


def test_distance_is_symmetric():
    a = (-6.2088, 106.8456)
    b = (1.3521, 103.8198)
    assert haversine_km(*a, *b) == pytest.approx(haversine_km(*b, *a))


def test_antipodal_points_are_half_the_circumference():
    assert haversine_km(0, 0, 0, 180) == pytest.approx(math.pi * 6371, rel=1e-9)


def test_point_150m_away_is_outside_100m_fence():
    fence = GeoFence(latitude=CENTER.latitude, longitude=CENTER.longitude, radius=100)
    point = _north_of(CENTER, 150)

    assert is_within_geofence(point, fence) is False
    assert distance_m(point, fence) == pytest.approx(150, abs=0.5)


def test_point_on_the_boundary_is_inside():
    fence = GeoFence(latitude=CENTER.latitude, longitude=CENTER.longitude, radius=100)
    assert is_within_geofence(_north_of(CENTER, 99.9), fence) is True


def test_missing_point_fails_an_enforceable_fence():
    fence = GeoFence(latitude=CENTER.latitude, longitude=CENTER.longitude, radius=100)
    assert is_within_geofence(None, fence) is False
