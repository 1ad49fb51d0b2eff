"""
Location settings and geocoding routes.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from eventchat.db.session import get_db
from eventchat.models.user import User
from eventchat.schemas.location import (
    LocationIn, LocationSettingsUpdate, LocationSettingsResponse,
    DistanceRequest, DistanceResponse, CitySuggestion, ReverseGeocodeResponse
)
from eventchat.schemas.user import UserResponse
from eventchat.api.dependencies import get_current_user
from eventchat.services import geocoding_service, location_service

router = APIRouter(prefix="/geo", tags=["geo"])


@router.get("/settings", response_model=LocationSettingsResponse)
async def get_location_settings(current_user: User = Depends(get_current_user)):
    """Current city and discovery settings."""
    return location_service.get_settings(current_user)


@router.put("/current-location", response_model=UserResponse)
async def update_current_location(
    location: LocationIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set the caller's current city."""
    user = location_service.set_current_city(db, current_user, location)
    return UserResponse.from_user(user)


@router.put("/settings", response_model=LocationSettingsResponse)
async def update_location_settings(
    update: LocationSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update search location, radius or auto-detect."""
    user = location_service.update_settings(db, current_user, update)
    return location_service.get_settings(user)


@router.get("/search-cities", response_model=List[CitySuggestion])
async def search_cities(
    query: Optional[str] = None,
    current_user: User = Depends(get_current_user)
):
    """City autocomplete."""
    return await geocoding_service.search_cities(query)


@router.get("/reverse", response_model=ReverseGeocodeResponse)
async def reverse_geocode(
    lng: float = Query(..., ge=-180, le=180),
    lat: float = Query(..., ge=-90, le=90),
    current_user: User = Depends(get_current_user)
):
    """Best-effort city for a coordinate pair."""
    return await geocoding_service.reverse_geocode(lng, lat)


@router.post("/calculate-distance", response_model=DistanceResponse)
async def calculate_distance(
    request: DistanceRequest,
    current_user: User = Depends(get_current_user)
):
    """Distance between two [lng, lat] points in miles and kilometres."""
    return location_service.calculate_distance(request.point1, request.point2)
