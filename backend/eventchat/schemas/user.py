"""
Pydantic schemas for User entity.
"""
from pydantic import BaseModel, EmailStr
from typing import List, Optional
from datetime import datetime
from eventchat.schemas.location import LocationOut, LocationSettingsOut


class UserSummary(BaseModel):
    """Public summary attached to events, posts, follows and notifications."""
    id: int
    full_name: str
    username: str
    profile_pic: str = ""

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Schema for user signup."""
    full_name: str
    email: EmailStr
    username: str
    password: str


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    """Schema for profile update."""
    profile_pic: Optional[str] = None
    bio: Optional[str] = None
    username: Optional[str] = None


class UserResponse(BaseModel):
    """Schema for the authenticated user's own profile."""
    id: int
    full_name: str
    email: EmailStr
    username: str
    profile_pic: str
    bio: str
    location_settings: LocationSettingsOut
    current_city: LocationOut
    followers: List[int] = []
    following: List[int] = []
    created_at: datetime

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            full_name=user.full_name,
            email=user.email,
            username=user.username,
            profile_pic=user.profile_pic,
            bio=user.bio,
            location_settings=user.location_settings,
            current_city=user.current_location,
            followers=[u.id for u in user.followers],
            following=[u.id for u in user.following],
            created_at=user.created_at,
        )


class PublicProfileResponse(UserSummary):
    """Schema for another user's profile (no email)."""
    bio: str
    current_city: LocationOut
    follower_count: int
    following_count: int
    created_at: datetime

    @classmethod
    def from_user(cls, user) -> "PublicProfileResponse":
        return cls(
            id=user.id,
            full_name=user.full_name,
            username=user.username,
            profile_pic=user.profile_pic,
            bio=user.bio,
            current_city=user.current_location,
            follower_count=user.follower_count,
            following_count=user.following_count,
            created_at=user.created_at,
        )


class AuthResponse(UserResponse):
    """Profile returned by signup and login together with the issued token."""
    access_token: str
    token_type: str = "bearer"
