"""
User model for authentication, profile and location settings.
"""
from sqlalchemy import Column, String, Boolean, Float
from sqlalchemy.orm import relationship, validates
from eventchat.core.config import settings
from eventchat.db.base import BaseModel


class User(BaseModel):
    """User with current city, discovery settings and follow graph accessors."""
    __tablename__ = "users"

    username = Column(String(20), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    bio = Column(String(160), default="", nullable=False)
    profile_pic = Column(String(500), default="", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Current city; [0, 0] means not set
    current_city = Column(String(100), default="", nullable=False)
    current_state = Column(String(100), default="", nullable=False)
    current_country = Column(String(100), default="", nullable=False)
    current_lng = Column(Float, default=0.0, nullable=False)
    current_lat = Column(Float, default=0.0, nullable=False)

    # Location settings
    search_city = Column(String(100), default="", nullable=False)
    search_state = Column(String(100), default="", nullable=False)
    search_country = Column(String(100), default="", nullable=False)
    search_lng = Column(Float, default=0.0, nullable=False)
    search_lat = Column(Float, default=0.0, nullable=False)
    near_me_radius = Column(Float, default=settings.DEFAULT_NEAR_ME_RADIUS, nullable=False)
    auto_detect_location = Column(Boolean, default=True, nullable=False)

    # Follow graph, read straight from the follows table
    followers = relationship(
        "User",
        secondary="follows",
        primaryjoin="User.id == follows.c.following_id",
        secondaryjoin="User.id == follows.c.follower_id",
        viewonly=True,
    )
    following = relationship(
        "User",
        secondary="follows",
        primaryjoin="User.id == follows.c.follower_id",
        secondaryjoin="User.id == follows.c.following_id",
        viewonly=True,
    )

    events = relationship("Event", back_populates="creator", cascade="all, delete-orphan")
    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")

    @validates("near_me_radius")
    def _clamp_radius(self, key, value):
        if value is None:
            return settings.DEFAULT_NEAR_ME_RADIUS
        return max(settings.MIN_NEAR_ME_RADIUS, min(settings.MAX_NEAR_ME_RADIUS, float(value)))

    @property
    def current_coordinates(self):
        return [self.current_lng, self.current_lat]

    @property
    def search_coordinates(self):
        return [self.search_lng, self.search_lat]

    @property
    def current_location(self) -> dict:
        return {
            "city": self.current_city,
            "state": self.current_state,
            "country": self.current_country,
            "coordinates": self.current_coordinates,
        }

    @property
    def search_location(self) -> dict:
        return {
            "city": self.search_city,
            "state": self.search_state,
            "country": self.search_country,
            "coordinates": self.search_coordinates,
        }

    @property
    def location_settings(self) -> dict:
        return {
            "search_location": self.search_location,
            "near_me_radius": self.near_me_radius,
            "auto_detect_location": self.auto_detect_location,
        }

    @property
    def follower_count(self) -> int:
        return len(self.followers)

    @property
    def following_count(self) -> int:
        return len(self.following)
