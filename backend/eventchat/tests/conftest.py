"""
Shared fixtures: in-memory SQLite database, API client and user factory.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from eventchat.main import app
from eventchat.db.base import Base
from eventchat.db.session import get_db, register_sqlite_functions
from eventchat.services.presence import presence
import eventchat.models  # noqa: F401

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
register_sqlite_functions(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

SAN_FRANCISCO = {
    "city": "San Francisco",
    "state": "CA",
    "country": "USA",
    "coordinates": [-122.42, 37.77],
}


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    presence.clear()
    yield
    presence.clear()
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(client):
    """
    Sign up a user and return ``(user_id, headers)``.

    The session cookie is dropped so every request authenticates with the
    bearer header it is given.
    """
    def _make_user(username, location=SAN_FRANCISCO):
        response = client.post(
            "/api/auth/signup",
            json={
                "full_name": username.title(),
                "email": f"{username}@example.com",
                "username": username,
                "password": "secret123",
            }
        )
        assert response.status_code == 201, response.text
        client.cookies.clear()
        body = response.json()
        headers = {"Authorization": f"Bearer {body['access_token']}"}
        if location is not None:
            _set_location(client, headers, location)
        return body["id"], headers

    return _make_user


@pytest.fixture
def set_location(client):
    def _set(headers, location):
        return _set_location(client, headers, location)
    return _set


def _set_location(client, headers, location):
    response = client.put("/api/geo/current-location", json=location, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()
