"""
Pydantic schemas for Notification entity.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from eventchat.models.notification import NotificationType
from eventchat.schemas.user import UserSummary


class RelatedPost(BaseModel):
    id: int
    content: str

    class Config:
        from_attributes = True


class RelatedEvent(BaseModel):
    id: int
    title: str
    date: datetime

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    """Schema for notification response and real-time push payload."""
    id: int
    recipient_id: int
    sender: UserSummary
    type: NotificationType
    message: str
    related_post: Optional[RelatedPost] = None
    related_event: Optional[RelatedEvent] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    """Page of notifications plus the live unread count."""
    notifications: List[NotificationResponse]
    unread_count: int


class SendNotificationPayload(BaseModel):
    """Client-originated notification received over the real-time channel."""
    recipient_id: int
    type: NotificationType
    message: str
    related_post_id: Optional[int] = None
    related_event_id: Optional[int] = None
