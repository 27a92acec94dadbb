"""
Geospatial helpers.

A tiny spherical-earth geometry layer: Haversine distance for matching signals, the direct
(forward) great-circle projection used to place simulated away-from-home samples, and
`offset_point` for the small degree jitter the simulators add around a fix.

Every point produced here is a valid `Coordinate`: latitude is clamped to the poles and
longitude is wrapped across the antimeridian.
"""

from __future__ import annotations

from math import asin, atan2, cos, degrees, radians, sin, sqrt

from kyctrust.domain.models import Coordinate

EARTH_RADIUS_KM = 6371.0


def _wrap_lng(lng: float) -> float:
    wrapped = (lng + 540.0) % 360.0 - 180.0
    # +180 wraps to -180; keep the caller's sign for the antimeridian itself.
    if wrapped == -180.0 and lng > 0:
        return 180.0
    return wrapped


def normalize_point(lat: float, lng: float) -> Coordinate:
    """Clamp `lat` to [-90, 90] and wrap `lng` into [-180, 180]."""
    return Coordinate(lat=max(-90.0, min(90.0, lat)), lng=_wrap_lng(lng))


def offset_point(origin: Coordinate, dlat: float, dlng: float) -> Coordinate:
    """Shift `origin` by raw degree offsets, staying inside the valid coordinate range."""
    return normalize_point(origin.lat + dlat, origin.lng + dlng)


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Compute great-circle distance in kilometres between two coordinates.

    NaN inputs propagate to a NaN result; callers must guard.
    """
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = radians(b.lat - a.lat)
    dlng = radians(b.lng - a.lng)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    if h > 1.0:
        h = 1.0
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(h), sqrt(1 - h))


def destination_point(origin: Coordinate, bearing_deg: float, distance: float) -> Coordinate:
    """Project `distance` km from `origin` along the initial `bearing_deg` (clockwise from north)."""
    delta = distance / EARTH_RADIUS_KM
    theta = radians(bearing_deg)
    lat1 = radians(origin.lat)
    lng1 = radians(origin.lng)

    sin_lat2 = sin(lat1) * cos(delta) + cos(lat1) * sin(delta) * cos(theta)
    lat2 = asin(max(-1.0, min(1.0, sin_lat2)))
    lng2 = lng1 + atan2(
        sin(theta) * sin(delta) * cos(lat1),
        cos(delta) - sin(lat1) * sin(lat2),
    )

    return normalize_point(degrees(lat2), degrees(lng2))
