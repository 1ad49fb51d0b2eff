"""
Event model with location, attendees and capacity.
"""
from sqlalchemy import (
    Column, String, Text, Boolean, Float, Integer, DateTime, ForeignKey, JSON,
    Enum as SQLEnum, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from eventchat.db.base import BaseModel
from eventchat.core.utils import utcnow
import enum


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class EventCategory(str, enum.Enum):
    """Event category enumeration."""
    SOCIAL = "social"
    PROFESSIONAL = "professional"
    EDUCATIONAL = "educational"
    ENTERTAINMENT = "entertainment"
    SPORTS = "sports"
    OTHER = "other"


class RSVPStatus(str, enum.Enum):
    """Attendance intent for an event."""
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"


class Event(BaseModel):
    """Event tied to its creator's city at creation time."""
    __tablename__ = "events"
    __table_args__ = (
        # Spatial prefilter index; the radius check runs on top of it
        Index("ix_events_lat_lng", "lat", "lng"),
        Index("ix_events_creator_created", "creator_id", "created_at"),
    )

    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    lng = Column(Float, nullable=False)
    lat = Column(Float, nullable=False)
    venue = Column(String(200), default="", nullable=False)

    date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=True)
    category = Column(
        SQLEnum(EventCategory, values_callable=_enum_values),
        default=EventCategory.OTHER,
        nullable=False,
        index=True
    )
    max_attendees = Column(Integer, nullable=True)  # None means unlimited
    is_private = Column(Boolean, default=False, nullable=False, index=True)
    image = Column(Text, default="", nullable=False)
    tags = Column(JSON, default=list, nullable=False)

    # Relationships
    creator = relationship("User", back_populates="events")
    attendees = relationship(
        "EventAttendee",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventAttendee.id"
    )
    posts = relationship("Post", back_populates="event")

    @property
    def coordinates(self):
        return [self.lng, self.lat]

    @property
    def location(self) -> dict:
        return {
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "coordinates": self.coordinates,
            "venue": self.venue,
        }

    @property
    def attendee_count(self) -> int:
        return sum(1 for a in self.attendees if a.status == RSVPStatus.YES)

    def rsvp_for(self, user_id: int):
        """Return the attendee row for a user, if any."""
        for attendee in self.attendees:
            if attendee.user_id == user_id:
                return attendee
        return None

    def user_rsvp(self, user_id: int) -> str:
        attendee = self.rsvp_for(user_id)
        return attendee.status.value if attendee else RSVPStatus.NO.value


class EventAttendee(BaseModel):
    """One RSVP per user per event."""
    __tablename__ = "event_attendees"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),
    )

    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(
        SQLEnum(RSVPStatus, values_callable=_enum_values),
        default=RSVPStatus.YES,
        nullable=False
    )
    rsvp_date = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    event = relationship("Event", back_populates="attendees")
    user = relationship("User")
