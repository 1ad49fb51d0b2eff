"""
Pydantic schemas for locations and location settings.
"""
from pydantic import BaseModel
from typing import List, Optional


class LocationIn(BaseModel):
    """City plus [lng, lat] pair; completeness is checked by the location service."""
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    coordinates: Optional[List[float]] = None


class LocationOut(BaseModel):
    """Stored city with its [lng, lat] pair."""
    city: str
    state: str
    country: str
    coordinates: List[float]


class LocationSettingsOut(BaseModel):
    """Discovery settings of a user."""
    search_location: LocationOut
    near_me_radius: float
    auto_detect_location: bool


class LocationSettingsUpdate(BaseModel):
    """Partial update; every field is optional and validated on its own."""
    search_location: Optional[LocationIn] = None
    near_me_radius: Optional[float] = None
    auto_detect_location: Optional[bool] = None


class LocationSettingsResponse(BaseModel):
    """Settings together with the current city."""
    location_settings: LocationSettingsOut
    current_city: LocationOut


class DistanceRequest(BaseModel):
    """Two [lng, lat] points."""
    point1: Optional[List[float]] = None
    point2: Optional[List[float]] = None


class DistanceResponse(BaseModel):
    """Distance rounded to one decimal place."""
    distance_miles: float
    distance_km: float


class CitySuggestion(BaseModel):
    """Geocoding candidate."""
    city: str
    state: str
    country: str
    coordinates: List[float]
    display_name: Optional[str] = None


class ReverseGeocodeResponse(BaseModel):
    """Best-effort city for a coordinate pair."""
    city: str
    state: str
    country: str
