"""
Great-circle distance helpers.

Points are ``[longitude, latitude]`` pairs in decimal degrees, the same order
stored on users, events and posts.
"""
from math import asin, atan2, cos, degrees, radians, sin, sqrt
from typing import Optional, Sequence, Tuple

EARTH_RADIUS_MILES = 3959
METERS_PER_MILE = 1609.34
KM_PER_MILE = 1.60934


def distance(point_a: Sequence[float], point_b: Sequence[float]) -> float:
    """Haversine distance in miles between two ``[lng, lat]`` points."""
    lng1, lat1 = point_a
    lng2, lat2 = point_b

    d_lat = radians(lat2 - lat1)
    d_lng = radians(lng2 - lng1)
    a = (
        sin(d_lat / 2) ** 2
        + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lng / 2) ** 2
    )
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


def is_location_set(coordinates: Optional[Sequence[float]]) -> bool:
    """
    Return True if the pair counts as a recorded location.

    ``[0, 0]`` is the "unset" default, and only the longitude is checked, so a
    real location on the prime meridian also reads as unset.
    """
    if not coordinates or len(coordinates) != 2:
        return False
    return coordinates[0] != 0


def bounding_box(
    origin: Sequence[float],
    radius_miles: float
) -> Tuple[float, float, Optional[float], Optional[float]]:
    """
    Latitude/longitude box that contains every point within ``radius_miles``.

    Returns ``(min_lat, max_lat, min_lng, max_lng)``. The longitude bounds are
    None when the box would wrap the antimeridian or reach a pole, in which case
    only the latitude band can be used as a prefilter.
    """
    lng, lat = origin
    angular = radius_miles / EARTH_RADIUS_MILES
    d_lat = degrees(angular)
    min_lat = max(lat - d_lat, -90.0)
    max_lat = min(lat + d_lat, 90.0)

    if min_lat <= -90.0 or max_lat >= 90.0:
        return min_lat, max_lat, None, None

    sin_ratio = sin(angular) / cos(radians(lat))
    if sin_ratio >= 1:
        return min_lat, max_lat, None, None

    d_lng = degrees(asin(sin_ratio))
    min_lng = lng - d_lng
    max_lng = lng + d_lng
    if min_lng < -180.0 or max_lng > 180.0:
        return min_lat, max_lat, None, None

    return min_lat, max_lat, min_lng, max_lng
