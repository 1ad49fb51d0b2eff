"""
Database initialization script.
"""
from eventchat.db.session import init_db

# Import all models so SQLAlchemy can register them
from eventchat.models import (  # noqa: F401
    User, Event, EventAttendee, Post, PostLike, Follow, Notification
)

if __name__ == "__main__":
    print("Initializing database...")
    init_db()
    print("Database initialized successfully!")
