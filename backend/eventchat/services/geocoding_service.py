"""
City search and reverse geocoding through OpenStreetMap Nominatim.

Nominatim is a free public service and may be slow or down. Neither lookup ever
fails because of it: search falls back to a built-in list of major cities
filtered by substring, reverse geocoding to the nearest of those cities.
"""
import logging
from typing import List, Optional
import httpx
from eventchat.core import geo
from eventchat.core.config import settings
from eventchat.core.exceptions import UpstreamUnavailableError, ValidationError

logger = logging.getLogger(__name__)

MAX_CITY_RESULTS = 8
PLACE_TYPES = {"city", "town", "village", "municipality", "borough"}

FALLBACK_CITIES = [
    {"city": "San Francisco", "state": "CA", "country": "USA", "coordinates": [-122.4194, 37.7749]},
    {"city": "Los Angeles", "state": "CA", "country": "USA", "coordinates": [-118.2437, 34.0522]},
    {"city": "New York", "state": "NY", "country": "USA", "coordinates": [-74.0060, 40.7128]},
    {"city": "Chicago", "state": "IL", "country": "USA", "coordinates": [-87.6298, 41.8781]},
    {"city": "Austin", "state": "TX", "country": "USA", "coordinates": [-97.7431, 30.2672]},
    {"city": "Seattle", "state": "WA", "country": "USA", "coordinates": [-122.3321, 47.6062]},
    {"city": "Denver", "state": "CO", "country": "USA", "coordinates": [-104.9903, 39.7392]},
    {"city": "Miami", "state": "FL", "country": "USA", "coordinates": [-80.1918, 25.7617]},
    {"city": "Boston", "state": "MA", "country": "USA", "coordinates": [-71.0588, 42.3601]},
    {"city": "Portland", "state": "OR", "country": "USA", "coordinates": [-122.6765, 45.5152]},
    {"city": "Phoenix", "state": "AZ", "country": "USA", "coordinates": [-112.0740, 33.4484]},
    {"city": "Atlanta", "state": "GA", "country": "USA", "coordinates": [-84.3880, 33.7490]},
]


async def _fetch_json(url: str, params: dict):
    """GET a Nominatim endpoint; any transport or payload problem is an upstream failure."""
    headers = {"User-Agent": settings.NOMINATIM_USER_AGENT}
    try:
        async with httpx.AsyncClient(timeout=settings.GEOCODING_TIMEOUT) as client:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise UpstreamUnavailableError(f"Geocoding service unavailable: {e}") from e


def _city_from_address(address: dict, display_name: str = "") -> Optional[str]:
    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("municipality")
        or address.get("borough")
    )
    if not city and display_name:
        city = display_name.split(",")[0].strip()
    return city or None


def _state_from_address(address: dict) -> str:
    return (
        address.get("state")
        or address.get("province")
        or address.get("region")
        or address.get("county")
        or "Unknown State"
    )


def _to_suggestion(item: dict) -> Optional[dict]:
    """Map one Nominatim search hit to a city suggestion, or None if it is not a city."""
    address = item.get("address") or {}
    is_place = (
        item.get("addresstype") in PLACE_TYPES
        or item.get("type") in PLACE_TYPES
        or any(address.get(key) for key in ("city", "town", "village"))
    )
    if not is_place:
        return None

    city = _city_from_address(address, item.get("display_name", ""))
    if not city:
        return None

    try:
        coordinates = [float(item["lon"]), float(item["lat"])]
    except (KeyError, TypeError, ValueError):
        return None

    return {
        "city": city,
        "state": _state_from_address(address),
        "country": address.get("country") or "Unknown",
        "coordinates": coordinates,
        "display_name": item.get("display_name"),
    }


def fallback_cities(query: str) -> List[dict]:
    """Built-in cities whose name or state contains the query, case-insensitively."""
    needle = query.lower()
    return [
        dict(city) for city in FALLBACK_CITIES
        if needle in city["city"].lower() or needle in city["state"].lower()
    ]


async def search_cities(query: Optional[str]) -> List[dict]:
    """Candidate cities for a free-text query."""
    if not query or len(query.strip()) < 2:
        raise ValidationError("Search query must be at least 2 characters")
    query = query.strip()

    params = {
        "format": "json",
        "q": query,
        "limit": 10,
        "addressdetails": 1,
        "featuretype": "city",
    }
    if settings.NOMINATIM_COUNTRY_CODES:
        params["countrycodes"] = settings.NOMINATIM_COUNTRY_CODES

    try:
        data = await _fetch_json(settings.NOMINATIM_SEARCH_URL, params)
    except UpstreamUnavailableError as e:
        logger.warning(f"City search falling back to built-in list: {e.message}")
        return fallback_cities(query)

    if not isinstance(data, list):
        logger.warning("City search got an unexpected payload, using built-in list")
        return fallback_cities(query)

    cities = []
    for item in data:
        suggestion = _to_suggestion(item)
        if suggestion:
            cities.append(suggestion)
        if len(cities) >= MAX_CITY_RESULTS:
            break
    return cities


def nearest_fallback_city(lng: float, lat: float) -> dict:
    nearest = min(FALLBACK_CITIES, key=lambda c: geo.distance([lng, lat], c["coordinates"]))
    return {"city": nearest["city"], "state": nearest["state"], "country": nearest["country"]}


async def reverse_geocode(lng: float, lat: float) -> dict:
    """Best-effort city/state/country for a coordinate pair."""
    params = {"format": "json", "lat": lat, "lon": lng, "zoom": 10, "addressdetails": 1}
    try:
        data = await _fetch_json(settings.NOMINATIM_REVERSE_URL, params)
    except UpstreamUnavailableError as e:
        logger.warning(f"Reverse geocoding falling back to nearest known city: {e.message}")
        return nearest_fallback_city(lng, lat)

    address = data.get("address") if isinstance(data, dict) else None
    city = _city_from_address(address or {}, "")
    if not city:
        return nearest_fallback_city(lng, lat)

    return {
        "city": city,
        "state": _state_from_address(address),
        "country": address.get("country") or "Unknown",
    }
