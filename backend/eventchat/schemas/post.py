"""
Pydantic schemas for Post entity.
"""
from pydantic import AliasChoices, BaseModel, Field
from typing import List, Optional
from datetime import datetime
from eventchat.models.post import PostType
from eventchat.schemas.location import LocationOut
from eventchat.schemas.user import UserSummary


class PostCreate(BaseModel):
    """Schema for post creation."""
    content: str = Field("", max_length=500)
    image: Optional[str] = None  # data URL or https URL
    type: PostType = PostType.GENERAL
    event_id: Optional[int] = None


class EventRef(BaseModel):
    """Linked event summary."""
    id: int
    title: str

    class Config:
        from_attributes = True


class PostResponse(BaseModel):
    """Schema for post response."""
    id: int
    content: str
    author: UserSummary
    location: LocationOut
    image: str
    # User ids in the order the likes were stored
    likes: List[int] = Field(default=[], validation_alias=AliasChoices("like_user_ids", "likes"))
    like_count: int
    event: Optional[EventRef] = None
    type: PostType
    created_at: datetime
    updated_at: datetime
    distance_in_miles: Optional[float] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_post(cls, post, distance_in_miles: Optional[float] = None) -> "PostResponse":
        response = cls.model_validate(post)
        if distance_in_miles is None:
            return response
        return response.model_copy(update={"distance_in_miles": distance_in_miles})


class LikeToggleResponse(BaseModel):
    """Schema for like toggle result."""
    is_liked: bool
    like_count: int
    likes: List[int]
