"""
Post model with location and likes.
"""
from sqlalchemy import (
    Column, String, Text, Float, Integer, ForeignKey, Enum as SQLEnum, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from eventchat.db.base import BaseModel
import enum


class PostType(str, enum.Enum):
    """Post type enumeration."""
    GENERAL = "general"
    EVENT_RELATED = "event-related"
    ANNOUNCEMENT = "announcement"


class Post(BaseModel):
    """Post located at its author's current city."""
    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_lat_lng", "lat", "lng"),
        Index("ix_posts_author_created", "author_id", "created_at"),
    )

    content = Column(String(500), default="", nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    lng = Column(Float, nullable=False)
    lat = Column(Float, nullable=False)

    image = Column(Text, default="", nullable=False)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(
        SQLEnum(PostType, values_callable=lambda e: [m.value for m in e]),
        default=PostType.GENERAL,
        nullable=False
    )

    # Relationships
    author = relationship("User", back_populates="posts")
    event = relationship("Event", back_populates="posts")
    likes = relationship(
        "PostLike",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="PostLike.id"
    )

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
        }

    @property
    def like_user_ids(self):
        return [like.user_id for like in self.likes]

    @property
    def like_count(self) -> int:
        return len(self.likes)


class PostLike(BaseModel):
    """A user's like on a post; at most one per pair."""
    __tablename__ = "post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_like"),
    )

    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    post = relationship("Post", back_populates="likes")
