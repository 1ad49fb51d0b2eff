"""
Notification model for in-app activity.
"""
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship
from eventchat.db.base import BaseModel
import enum


class NotificationType(str, enum.Enum):
    """Kinds of social events that notify a user."""
    FOLLOW = "follow"
    LIKE_POST = "like_post"
    EVENT_INVITE = "event_invite"
    EVENT_RSVP = "event_rsvp"
    NEW_EVENT_NEARBY = "new_event_nearby"
    MESSAGE = "message"


class Notification(BaseModel):
    """Notification for ``recipient`` about something ``sender`` did."""
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_recipient_read", "recipient_id", "is_read"),
    )

    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(
        SQLEnum(NotificationType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    message = Column(String(500), nullable=False)
    related_post_id = Column(Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True)
    related_event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)

    # Relationships
    recipient = relationship("User", foreign_keys=[recipient_id])
    sender = relationship("User", foreign_keys=[sender_id])
    related_post = relationship("Post")
    related_event = relationship("Event")
