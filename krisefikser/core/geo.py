"""
Geospatial helpers.

Great-circle distances on a spherical earth, plus a bounding box used to
narrow SQL candidate sets before the exact haversine check.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import asin, atan2, cos, degrees, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0

# Slack added to box edges so float rounding never excludes a point on the circle.
_BOX_EPSILON_DEG = 1e-9


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


@dataclass(frozen=True)
class BoundingBox:
    """Lat/lon box containing a circle. Longitude bounds are None when unrestricted."""

    min_lat: float
    max_lat: float
    min_lon: float | None
    max_lon: float | None


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in kilometers between two points."""
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = lat2 - lat1
    dlon = radians(b.lon - a.lon)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Clamp rounding noise so sqrt(1 - h) stays real.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(h), sqrt(1 - h))


def bounding_box(center: GeoPoint, radius_km: float) -> BoundingBox:
    """
    Smallest lat/lon box guaranteed to contain every point within radius_km.

    The box is only a prefilter: callers must still apply haversine_km.
    Longitude is left unrestricted when the circle touches a pole or
    crosses the antimeridian.
    """
    angular = radius_km / EARTH_RADIUS_KM
    dlat = degrees(angular) + _BOX_EPSILON_DEG
    min_lat = max(-90.0, center.lat - dlat)
    max_lat = min(90.0, center.lat + dlat)

    cos_lat = cos(radians(center.lat))
    if angular >= radians(90) or sin(angular) >= cos_lat:
        return BoundingBox(min_lat, max_lat, None, None)

    dlon = degrees(asin(sin(angular) / cos_lat)) + _BOX_EPSILON_DEG
    min_lon = center.lon - dlon
    max_lon = center.lon + dlon
    if min_lon < -180.0 or max_lon > 180.0:
        return BoundingBox(min_lat, max_lat, None, None)
    return BoundingBox(min_lat, max_lat, min_lon, max_lon)


def within_radius(center: GeoPoint, point: GeoPoint, radius_km: float) -> bool:
    """True if point lies within radius_km (inclusive) of center."""
    return haversine_km(center, point) <= radius_km
