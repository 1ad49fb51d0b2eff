"""
Nearby discovery for events and posts.

The database does the radius search: a bounding-box prefilter on the indexed
lat/lng columns, then a Haversine expression in SQL compared against the radius
in metres. The application-side ``geo.distance`` uses the same formula and Earth
radius, so both paths report the same distance for the same two points.
"""
import logging
from math import cos, radians
from typing import List, Sequence, Tuple
from sqlalchemy import Float, func
from sqlalchemy.orm import Session, selectinload
from eventchat.core import geo
from eventchat.core.exceptions import ValidationError
from eventchat.core.utils import page_offset, utcnow
from eventchat.models.event import Event
from eventchat.models.post import Post
from eventchat.models.user import User
from eventchat.services.location_service import LOCATION_NOT_SET_MESSAGE

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = geo.EARTH_RADIUS_MILES * geo.METERS_PER_MILE


def distance_meters_expr(lng_col, lat_col, origin: Sequence[float]):
    """SQL Haversine distance in metres from ``origin`` to a lng/lat column pair."""
    lng, lat = origin
    d_lat = func.radians(lat_col - lat, type_=Float)
    d_lng = func.radians(lng_col - lng, type_=Float)
    half_chord = (
        func.power(func.sin(d_lat * 0.5, type_=Float), 2, type_=Float)
        + cos(radians(lat))
        * func.cos(func.radians(lat_col, type_=Float), type_=Float)
        * func.power(func.sin(d_lng * 0.5, type_=Float), 2, type_=Float)
    )
    return 2 * EARTH_RADIUS_METERS * func.asin(func.sqrt(half_chord, type_=Float), type_=Float)


def _within_radius(query, model, origin: Sequence[float], radius_miles: float):
    """Apply the prefilter and the exact radius predicate; return (query, distance expr)."""
    min_lat, max_lat, min_lng, max_lng = geo.bounding_box(origin, radius_miles)
    distance = distance_meters_expr(model.lng, model.lat, origin)

    query = query.filter(
        model.lng != 0,
        model.lat >= min_lat,
        model.lat <= max_lat,
    )
    if min_lng is not None:
        query = query.filter(model.lng >= min_lng, model.lng <= max_lng)

    return query.filter(distance <= geo.miles_to_meters(radius_miles)), distance


def _require_origin(origin: Sequence[float]) -> None:
    if not geo.is_location_set(origin):
        raise ValidationError(LOCATION_NOT_SET_MESSAGE)


def find_nearby_events(
    db: Session,
    origin: Sequence[float],
    radius_miles: float,
    page: int = 1,
    limit: int = 10
) -> List[Tuple[Event, float]]:
    """
    Upcoming public events within ``radius_miles`` of ``origin``.

    Ordered by event date (soonest first), not by distance. Returns
    ``(event, distance_in_miles)`` pairs.
    """
    _require_origin(origin)

    query = db.query(Event).options(
        selectinload(Event.creator),
        selectinload(Event.attendees)
    ).filter(
        Event.date >= utcnow(),
        Event.is_private.is_(False)
    )
    query, distance = _within_radius(query, Event, origin, radius_miles)

    rows = query.add_columns(distance.label("distance")).order_by(
        Event.date.asc(), Event.id.asc()
    ).offset(page_offset(page, limit)).limit(limit).all()

    return [(event, geo.meters_to_miles(meters)) for event, meters in rows]


def find_nearby_posts(
    db: Session,
    origin: Sequence[float],
    radius_miles: float,
    page: int = 1,
    limit: int = 10
) -> List[Tuple[Post, float]]:
    """Posts within ``radius_miles`` of ``origin``, newest first."""
    _require_origin(origin)

    query = db.query(Post).options(
        selectinload(Post.author),
        selectinload(Post.event),
        selectinload(Post.likes)
    )
    query, distance = _within_radius(query, Post, origin, radius_miles)

    rows = query.add_columns(distance.label("distance")).order_by(
        Post.created_at.desc(), Post.id.desc()
    ).offset(page_offset(page, limit)).limit(limit).all()

    return [(post, geo.meters_to_miles(meters)) for post, meters in rows]


def distance_from_user(user: User, coordinates: Sequence[float]) -> float:
    """
    Application-side distance from the user's current city, in miles.

    0 when either side has no recorded location.
    """
    if not geo.is_location_set(user.current_coordinates) or not geo.is_location_set(coordinates):
        return 0.0
    return geo.distance(user.current_coordinates, coordinates)
