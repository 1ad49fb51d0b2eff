"""
Tests for city search and reverse geocoding, including the offline fallback.
"""
import asyncio
import httpx
import pytest
from eventchat.core.exceptions import UpstreamUnavailableError
from eventchat.services import geocoding_service

NOMINATIM_HITS = [
    {
        "lat": "30.2711286",
        "lon": "-97.7436995",
        "addresstype": "city",
        "display_name": "Austin, Travis County, Texas, United States",
        "address": {"city": "Austin", "state": "Texas", "country": "United States"},
    },
    {
        "lat": "30.25",
        "lon": "-97.75",
        "type": "restaurant",
        "display_name": "Austin Diner, Congress Avenue",
        "address": {"road": "Congress Avenue", "state": "Texas"},
    },
    {
        "lat": "42.15",
        "lon": "-72.5",
        "addresstype": "town",
        "display_name": "Austinville, Hampden County, Massachusetts",
        "address": {"town": "Austinville", "county": "Hampden County", "country": "United States"},
    },
]


@pytest.fixture
def upstream_down(monkeypatch):
    async def fail(url, params):
        raise UpstreamUnavailableError("Geocoding service unavailable: timed out")

    monkeypatch.setattr(geocoding_service, "_fetch_json", fail)


@pytest.fixture
def upstream_returns(monkeypatch):
    def install(payload):
        async def fetch(url, params):
            return payload
        monkeypatch.setattr(geocoding_service, "_fetch_json", fetch)
    return install


def test_search_maps_nominatim_results(client, make_user, upstream_returns):
    _, headers = make_user("alice")
    upstream_returns(NOMINATIM_HITS)

    response = client.get("/api/geo/search-cities", params={"query": "Austin"}, headers=headers)
    assert response.status_code == 200
    cities = response.json()
    assert [c["city"] for c in cities] == ["Austin", "Austinville"]
    assert cities[0]["state"] == "Texas"
    assert cities[0]["coordinates"] == [-97.7436995, 30.2711286]
    # State falls back to the county
    assert cities[1]["state"] == "Hampden County"


def test_search_caps_result_count(upstream_returns):
    upstream_returns([NOMINATIM_HITS[0]] * 12)
    cities = asyncio.run(geocoding_service.search_cities("Austin"))
    assert len(cities) == geocoding_service.MAX_CITY_RESULTS


def test_search_falls_back_to_builtin_cities(client, make_user, upstream_down):
    _, headers = make_user("alice")
    response = client.get("/api/geo/search-cities", params={"query": "san"}, headers=headers)
    assert response.status_code == 200
    assert [c["city"] for c in response.json()] == ["San Francisco"]

    # Matches on state as well, case-insensitively
    response = client.get("/api/geo/search-cities", params={"query": "ca"}, headers=headers)
    assert {c["city"] for c in response.json()} == {"San Francisco", "Los Angeles", "Chicago"}


def test_search_rejects_short_query(client, make_user):
    _, headers = make_user("alice")
    response = client.get("/api/geo/search-cities", params={"query": "a"}, headers=headers)
    assert response.status_code == 400


def test_reverse_geocode(client, make_user, upstream_returns):
    _, headers = make_user("alice")
    upstream_returns({"address": {"village": "Bolinas", "state": "California", "country": "United States"}})
    response = client.get("/api/geo/reverse", params={"lng": -122.68, "lat": 37.9}, headers=headers)
    assert response.json() == {"city": "Bolinas", "state": "California", "country": "United States"}


def test_reverse_geocode_falls_back_to_nearest_city(client, make_user, upstream_down):
    _, headers = make_user("alice")
    response = client.get("/api/geo/reverse", params={"lng": -122.27, "lat": 37.80}, headers=headers)
    assert response.status_code == 200
    assert response.json() == {"city": "San Francisco", "state": "CA", "country": "USA"}


def test_fetch_errors_become_upstream_unavailable(monkeypatch):
    class BrokenClient:
        def __init__(self, *args, **kwargs):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

        async def get(self, *args, **kwargs):
            raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(geocoding_service.httpx, "AsyncClient", BrokenClient)
    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(geocoding_service._fetch_json("https://example.invalid", {}))
    assert asyncio.run(geocoding_service.search_cities("Denver"))[0]["city"] == "Denver"
