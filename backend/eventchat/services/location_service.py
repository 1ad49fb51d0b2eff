"""
Location settings service: current city, search location, radius and the
effective discovery origin.
"""
import logging
from numbers import Real
from typing import List, Optional
from sqlalchemy.orm import Session
from eventchat.core import geo
from eventchat.core.config import settings
from eventchat.core.exceptions import ValidationError
from eventchat.models.user import User
from eventchat.schemas.location import LocationIn, LocationSettingsUpdate

logger = logging.getLogger(__name__)

LOCATION_REQUIRED_MESSAGE = "Location required. Please update your location in settings."
LOCATION_NOT_SET_MESSAGE = "Location not set. Please update your location in settings."


def validate_coordinates(coordinates: Optional[List[float]]) -> List[float]:
    """Return ``[lng, lat]`` as floats or raise if it is not a valid pair."""
    if not coordinates or len(coordinates) != 2:
        raise ValidationError("Coordinates must be a [lng, lat] pair")
    if not all(isinstance(c, Real) and not isinstance(c, bool) for c in coordinates):
        raise ValidationError("Coordinates must be numbers")
    lng, lat = float(coordinates[0]), float(coordinates[1])
    if not -180 <= lng <= 180 or not -90 <= lat <= 90:
        raise ValidationError("Coordinates are out of range")
    return [lng, lat]


def validate_location(location: Optional[LocationIn], message: str) -> LocationIn:
    """Require city, state, country and a coordinate pair."""
    if (
        location is None
        or not location.city
        or not location.state
        or not location.country
        or not location.coordinates
        or len(location.coordinates) != 2
    ):
        raise ValidationError(message)
    return LocationIn(
        city=location.city,
        state=location.state,
        country=location.country,
        coordinates=validate_coordinates(location.coordinates)
    )


def validate_radius(radius: float) -> float:
    if radius < settings.MIN_NEAR_ME_RADIUS or radius > settings.MAX_NEAR_ME_RADIUS:
        raise ValidationError(
            f"Near me radius must be between {settings.MIN_NEAR_ME_RADIUS} "
            f"and {settings.MAX_NEAR_ME_RADIUS} miles"
        )
    return radius


def get_settings(user: User) -> dict:
    return {
        "location_settings": user.location_settings,
        "current_city": user.current_location,
    }


def set_current_city(db: Session, user: User, location: LocationIn) -> User:
    """Replace the user's current city."""
    location = validate_location(
        location,
        "City, state, country, and coordinates [lng, lat] are required"
    )
    user.current_city = location.city
    user.current_state = location.state
    user.current_country = location.country
    user.current_lng, user.current_lat = location.coordinates
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} set current city to {location.city}, {location.state}")
    return user


def update_settings(db: Session, user: User, update: LocationSettingsUpdate) -> User:
    """Apply a partial settings update; every field is validated before any write."""
    search_location = None
    if update.search_location is not None:
        search_location = validate_location(
            update.search_location,
            "Search location must include city, state, country, and coordinates [lng, lat]"
        )
    radius = None
    if update.near_me_radius is not None:
        radius = validate_radius(update.near_me_radius)

    if search_location is not None:
        user.search_city = search_location.city
        user.search_state = search_location.state
        user.search_country = search_location.country
        user.search_lng, user.search_lat = search_location.coordinates
    if radius is not None:
        user.near_me_radius = radius
    if update.auto_detect_location is not None:
        user.auto_detect_location = update.auto_detect_location

    db.commit()
    db.refresh(user)
    return user


def effective_origin(user: User) -> List[float]:
    """Discovery origin: current city when auto-detecting, else the search location."""
    if user.auto_detect_location:
        return user.current_coordinates
    return user.search_coordinates


def effective_radius(user: User) -> float:
    return user.near_me_radius or settings.DEFAULT_NEAR_ME_RADIUS


def has_current_city(user: User) -> bool:
    return bool(user.current_city) and geo.is_location_set(user.current_coordinates)


def require_current_city(user: User) -> None:
    """Events and posts are pinned to the author's city, so one must be set."""
    if not has_current_city(user):
        raise ValidationError(LOCATION_REQUIRED_MESSAGE)


def calculate_distance(point1: Optional[List[float]], point2: Optional[List[float]]) -> dict:
    """Distance between two points, rounded to one decimal place for display."""
    if not point1 or not point2 or len(point1) != 2 or len(point2) != 2:
        raise ValidationError("Two coordinate pairs [lng, lat] are required")
    miles = geo.distance(validate_coordinates(point1), validate_coordinates(point2))
    return {
        "distance_miles": round(miles, 1),
        "distance_km": round(geo.miles_to_km(miles), 1),
    }
