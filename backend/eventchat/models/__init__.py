"""Models package - Import all models for SQLAlchemy registration."""
from eventchat.models.user import User
from eventchat.models.event import Event, EventAttendee, EventCategory, RSVPStatus
from eventchat.models.post import Post, PostLike, PostType
from eventchat.models.follow import Follow
from eventchat.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "Event",
    "EventAttendee",
    "EventCategory",
    "RSVPStatus",
    "Post",
    "PostLike",
    "PostType",
    "Follow",
    "Notification",
    "NotificationType",
]
