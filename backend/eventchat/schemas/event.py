"""
Pydantic schemas for Event entity.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from eventchat.core.utils import to_naive_utc
from eventchat.models.event import EventCategory, RSVPStatus
from eventchat.schemas.user import UserSummary


class EventBase(BaseModel):
    """Fields shared by event creation and update."""
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    date: datetime
    end_date: Optional[datetime] = None
    category: EventCategory = EventCategory.OTHER
    max_attendees: Optional[int] = Field(None, ge=1)
    is_private: bool = False
    venue: str = ""
    tags: List[str] = []
    image: Optional[str] = None  # data URL or https URL

    @field_validator("date", "end_date")
    @classmethod
    def normalize_datetime(cls, v):
        """Store every datetime as naive UTC."""
        return to_naive_utc(v)

    @field_validator("tags")
    @classmethod
    def check_tags(cls, v):
        for tag in v:
            if len(tag) > 20:
                raise ValueError("Tags must be 20 characters or less")
        return v


class EventCreate(EventBase):
    """Schema for event creation."""
    pass


class EventUpdate(EventBase):
    """Schema for event update; an omitted image keeps the current one."""
    pass


class EventLocation(BaseModel):
    """Event location with optional venue."""
    city: str
    state: str
    country: str
    coordinates: List[float]
    venue: str = ""


class AttendeeResponse(BaseModel):
    """Schema for one RSVP."""
    user: UserSummary
    status: RSVPStatus
    rsvp_date: datetime

    class Config:
        from_attributes = True


class EventResponse(BaseModel):
    """Schema for event response."""
    id: int
    title: str
    description: str
    creator: UserSummary
    location: EventLocation
    date: datetime
    end_date: Optional[datetime] = None
    category: EventCategory
    max_attendees: Optional[int] = None
    is_private: bool
    image: str
    tags: List[str] = []
    attendee_count: int
    created_at: datetime
    updated_at: datetime
    user_rsvp: Optional[str] = None
    distance_in_miles: Optional[float] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_event(
        cls,
        event,
        user_rsvp: Optional[str] = None,
        distance_in_miles: Optional[float] = None
    ) -> "EventResponse":
        response = cls.model_validate(event)
        return response.model_copy(update={
            "user_rsvp": user_rsvp,
            "distance_in_miles": distance_in_miles,
        })


class EventDetailResponse(EventResponse):
    """Schema for a single event with its attendee list."""
    attendees: List[AttendeeResponse] = []


class RSVPRequest(BaseModel):
    """Schema for RSVP; the status is validated by the event service."""
    status: str


class RSVPResponse(BaseModel):
    """Schema for RSVP result."""
    message: str
    user_rsvp: str
    attendee_count: int
    attendees: List[AttendeeResponse] = []


class EventInvite(BaseModel):
    """Schema for inviting a user to an event."""
    user_id: int
