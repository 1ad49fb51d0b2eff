"""
Tests for events: creation, nearby discovery, RSVP capacity and listings.
"""
from datetime import datetime, timedelta, timezone
import pytest
from eventchat.core import geo
from eventchat.core.security import get_password_hash
from eventchat.models.event import Event, EventAttendee, RSVPStatus
from eventchat.models.user import User
from eventchat.services import spatial_service

SF = [-122.42, 37.77]
MILES_PER_DEGREE_LAT = geo.EARTH_RADIUS_MILES * 3.141592653589793 / 180


def _city(name, coordinates):
    return {"city": name, "state": "CA", "country": "USA", "coordinates": coordinates}


def _event(title="Meetup", days=1, **extra):
    date = datetime.now(timezone.utc) + timedelta(days=days)
    return {"title": title, "description": "A gathering", "date": date.isoformat(), **extra}


def _create_event(client, headers, **kwargs):
    response = client.post("/api/events", json=_event(**kwargs), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_event_uses_creator_city(client, make_user):
    creator_id, headers = make_user("alice")
    event = _create_event(client, headers, venue="Dolores Park", tags=["music"], category="social")

    assert event["location"]["city"] == "San Francisco"
    assert event["location"]["coordinates"] == SF
    assert event["location"]["venue"] == "Dolores Park"
    assert event["creator"]["id"] == creator_id
    assert event["attendee_count"] == 1
    assert event["user_rsvp"] == "yes"


def test_create_event_requires_location(client, make_user):
    _, headers = make_user("alice", location=None)
    response = client.post("/api/events", json=_event(), headers=headers)
    assert response.status_code == 400
    assert "Location required" in response.json()["detail"]


def test_create_event_validates_fields(client, make_user):
    _, headers = make_user("alice")
    response = client.post("/api/events", json={"title": "No date", "description": "x"}, headers=headers)
    assert response.status_code == 422
    response = client.post("/api/events", json=_event(tags=["x" * 21]), headers=headers)
    assert response.status_code == 422


def test_nearby_event_scenario(client, make_user, set_location):
    """A user finds an event created a short walk away."""
    _, headers = make_user("xavier")
    set_location(headers, _city("San Francisco", [-122.41, 37.78]))
    event = _create_event(client, headers)
    set_location(headers, _city("San Francisco", SF))

    response = client.get("/api/events/nearby", headers=headers)
    assert response.status_code == 200
    results = response.json()
    assert [e["id"] for e in results] == [event["id"]]
    assert results[0]["distance_in_miles"] < 1
    assert results[0]["distance_in_miles"] == pytest.approx(geo.distance(SF, [-122.41, 37.78]), rel=1e-6)
    assert results[0]["creator"]["username"] == "xavier"
    assert results[0]["attendee_count"] == 1


def test_nearby_excludes_private_past_and_distant_events(client, make_user, set_location):
    _, viewer = make_user("viewer")
    _, host = make_user("host")

    soon = _create_event(client, host, title="Soon", days=1)
    later = _create_event(client, host, title="Later", days=3)
    _create_event(client, host, title="Private", is_private=True)
    _create_event(client, host, title="Past", days=-1)

    set_location(host, _city("Los Angeles", [-118.2437, 34.0522]))
    _create_event(client, host, title="Far away")

    response = client.get("/api/events/nearby", headers=viewer)
    # Soonest first, not nearest first
    assert [e["id"] for e in response.json()] == [soon["id"], later["id"]]


def test_nearby_respects_radius_and_pagination(client, make_user, set_location):
    _, viewer = make_user("viewer")
    _, host = make_user("host")

    inside = [SF[0], SF[1] + 24 / MILES_PER_DEGREE_LAT]
    outside = [SF[0], SF[1] + 26 / MILES_PER_DEGREE_LAT]
    set_location(host, _city("North", inside))
    first = _create_event(client, host, title="Inside", days=1)
    set_location(host, _city("Further North", outside))
    _create_event(client, host, title="Outside", days=2)
    set_location(host, _city("San Francisco", SF))
    second = _create_event(client, host, title="Here", days=3)

    events = client.get("/api/events/nearby", headers=viewer).json()
    assert [e["id"] for e in events] == [first["id"], second["id"]]
    assert events[0]["distance_in_miles"] == pytest.approx(24, rel=1e-6)

    page2 = client.get("/api/events/nearby", params={"page": 2, "limit": 1}, headers=viewer).json()
    assert [e["id"] for e in page2] == [second["id"]]


def test_nearby_uses_search_location_when_not_auto_detecting(client, make_user, set_location):
    _, viewer = make_user("viewer")
    _, host = make_user("host")
    set_location(host, _city("Los Angeles", [-118.2437, 34.0522]))
    la_event = _create_event(client, host)

    assert client.get("/api/events/nearby", headers=viewer).json() == []

    client.put(
        "/api/geo/settings",
        json={
            "search_location": _city("Los Angeles", [-118.25, 34.05]),
            "auto_detect_location": False,
        },
        headers=viewer
    )
    events = client.get("/api/events/nearby", headers=viewer).json()
    assert [e["id"] for e in events] == [la_event["id"]]


def test_nearby_requires_location(client, make_user):
    _, headers = make_user("alice", location=None)
    response = client.get("/api/events/nearby", headers=headers)
    assert response.status_code == 400
    assert "Location not set" in response.json()["detail"]


def test_sql_and_python_distances_agree(db):
    user = User(
        username="owner", email="owner@example.com", full_name="Owner",
        hashed_password=get_password_hash("secret123"),
        current_city="San Francisco", current_state="CA", current_country="USA",
        current_lng=SF[0], current_lat=SF[1],
    )
    db.add(user)
    db.flush()

    points = [[-122.27, 37.80], [-122.05, 37.37], [-121.89, 37.34], [-122.42, 37.99]]
    for i, (lng, lat) in enumerate(points):
        event = Event(
            title=f"Event {i}", description="d", creator_id=user.id,
            city="Bay Area", state="CA", country="USA", lng=lng, lat=lat,
            date=datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=i + 1),
        )
        event.attendees.append(EventAttendee(user_id=user.id, status=RSVPStatus.YES))
        db.add(event)
    db.commit()

    results = spatial_service.find_nearby_events(db, SF, 100)
    assert len(results) == len(points)
    for event, miles in results:
        assert miles == pytest.approx(geo.distance(SF, event.coordinates), rel=1e-9)
        assert miles == pytest.approx(spatial_service.distance_from_user(user, event.coordinates), rel=1e-9)


def test_capacity_scenario(client, make_user):
    """A full event rejects new "yes" RSVPs but not "maybe" or "no"."""
    _, creator = make_user("creator")
    _, guest = make_user("guest")
    event = _create_event(client, creator, max_attendees=1)
    assert event["attendee_count"] == 1

    response = client.post(f"/api/events/{event['id']}/rsvp", json={"status": "yes"}, headers=guest)
    assert response.status_code == 409
    assert response.json()["detail"] == "Event is at capacity"

    detail = client.get(f"/api/events/{event['id']}", headers=guest).json()
    assert detail["attendee_count"] == 1
    assert detail["user_rsvp"] == "no"

    for status in ("maybe", "no"):
        response = client.post(f"/api/events/{event['id']}/rsvp", json={"status": status}, headers=guest)
        assert response.status_code == 200
        assert response.json()["user_rsvp"] == status

    # The creator repeating "yes" is not blocked by their own seat
    response = client.post(f"/api/events/{event['id']}/rsvp", json={"status": "yes"}, headers=creator)
    assert response.status_code == 200
    assert response.json()["attendee_count"] == 1


def test_rsvp_upserts_single_row(client, make_user):
    _, creator = make_user("creator")
    guest_id, guest = make_user("guest")
    event = _create_event(client, creator)

    for status in ("yes", "maybe", "yes"):
        response = client.post(f"/api/events/{event['id']}/rsvp", json={"status": status}, headers=guest)
        assert response.status_code == 200

    body = response.json()
    assert body["attendee_count"] == 2
    assert [a["user"]["id"] for a in body["attendees"]].count(guest_id) == 1

    response = client.post(f"/api/events/{event['id']}/rsvp", json={"status": "perhaps"}, headers=guest)
    assert response.status_code == 400


def test_rsvp_yes_notifies_creator(client, make_user):
    _, creator = make_user("creator")
    guest_id, guest = make_user("guest")
    event = _create_event(client, creator, title="Picnic")

    client.post(f"/api/events/{event['id']}/rsvp", json={"status": "maybe"}, headers=guest)
    assert client.get("/api/notifications", headers=creator).json()["unread_count"] == 0

    client.post(f"/api/events/{event['id']}/rsvp", json={"status": "yes"}, headers=guest)
    notifications = client.get("/api/notifications", headers=creator).json()["notifications"]
    assert len(notifications) == 1
    assert notifications[0]["type"] == "event_rsvp"
    assert notifications[0]["sender"]["id"] == guest_id
    assert notifications[0]["related_event"]["title"] == "Picnic"
    assert notifications[0]["message"] == 'guest is attending your event "Picnic"'

    # The creator answering their own event never notifies themselves
    client.post(f"/api/events/{event['id']}/rsvp", json={"status": "yes"}, headers=creator)
    assert client.get("/api/notifications", headers=creator).json()["unread_count"] == 1


def test_my_events_lists_only_yes(client, make_user):
    """ "maybe" RSVPs stay out of "my events"."""
    _, host = make_user("host")
    _, guest = make_user("guest")
    maybe_event = _create_event(client, host, title="Maybe", days=1)
    yes_event = _create_event(client, host, title="Yes", days=2)

    client.post(f"/api/events/{maybe_event['id']}/rsvp", json={"status": "maybe"}, headers=guest)
    client.post(f"/api/events/{yes_event['id']}/rsvp", json={"status": "yes"}, headers=guest)

    events = client.get("/api/events/my-events", headers=guest).json()
    assert [e["id"] for e in events] == [yes_event["id"]]
    assert events[0]["user_rsvp"] == "yes"
    assert events[0]["attendee_count"] == 2
    assert events[0]["distance_in_miles"] == 0


def test_user_rsvped_events(client, make_user, set_location):
    _, host = make_user("host")
    guest_id, guest = make_user("guest")
    _, viewer = make_user("viewer")
    set_location(viewer, _city("Oakland", [-122.27, 37.80]))

    maybe_event = _create_event(client, host, title="Maybe", days=1)
    yes_event = _create_event(client, host, title="Yes", days=2)
    private_event = _create_event(client, host, title="Private", days=3, is_private=True)
    for event_id, status in (
        (maybe_event["id"], "maybe"), (yes_event["id"], "yes"), (private_event["id"], "yes")
    ):
        client.post(f"/api/events/{event_id}/rsvp", json={"status": status}, headers=guest)

    events = client.get(f"/api/events/user/{guest_id}/rsvped", headers=viewer).json()
    assert [(e["id"], e["user_rsvp"]) for e in events] == [
        (maybe_event["id"], "maybe"), (yes_event["id"], "yes")
    ]
    assert events[0]["distance_in_miles"] == pytest.approx(geo.distance([-122.27, 37.80], SF))


def test_update_event(client, make_user):
    _, creator = make_user("creator")
    _, other = make_user("other")
    event = _create_event(client, creator)

    changes = _event(title="Renamed", days=5, venue="Pier 39", max_attendees=10)
    response = client.put(f"/api/events/{event['id']}", json=changes, headers=other)
    assert response.status_code == 403

    response = client.put(f"/api/events/{event['id']}", json=changes, headers=creator)
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"
    assert response.json()["location"]["venue"] == "Pier 39"
    assert response.json()["max_attendees"] == 10

    response = client.put(f"/api/events/{event['id']}", json=_event(days=-1), headers=creator)
    assert response.status_code == 400

    assert client.put("/api/events/999", json=changes, headers=creator).status_code == 404


def test_invite(client, make_user):
    creator_id, creator = make_user("creator")
    guest_id, guest = make_user("guest")
    friend_id, friend = make_user("friend")
    event = _create_event(client, creator, title="Party")

    response = client.post(f"/api/events/{event['id']}/invite", json={"user_id": friend_id}, headers=guest)
    assert response.status_code == 403

    client.post(f"/api/events/{event['id']}/rsvp", json={"status": "yes"}, headers=guest)
    response = client.post(f"/api/events/{event['id']}/invite", json={"user_id": friend_id}, headers=guest)
    assert response.status_code == 200

    notifications = client.get("/api/notifications", headers=friend).json()["notifications"]
    assert [(n["type"], n["sender"]["id"]) for n in notifications] == [("event_invite", guest_id)]

    response = client.post(f"/api/events/{event['id']}/invite", json={"user_id": 999}, headers=creator)
    assert response.status_code == 404

    # Inviting yourself stores nothing
    client.post(f"/api/events/{event['id']}/invite", json={"user_id": creator_id}, headers=creator)
    assert client.get("/api/notifications", headers=creator).json()["notifications"][0]["type"] == "event_rsvp"
    assert len(client.get("/api/notifications", headers=creator).json()["notifications"]) == 1


def test_delete_event(client, make_user):
    _, creator = make_user("creator")
    _, other = make_user("other")
    event = _create_event(client, creator)

    assert client.delete(f"/api/events/{event['id']}", headers=other).status_code == 403
    assert client.delete(f"/api/events/{event['id']}", headers=creator).status_code == 200
    assert client.get(f"/api/events/{event['id']}", headers=creator).status_code == 404
