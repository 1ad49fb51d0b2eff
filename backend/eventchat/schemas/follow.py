"""
Pydantic schemas for the follow graph.
"""
from pydantic import BaseModel
from typing import List
from eventchat.schemas.user import UserSummary


class FollowStatusResponse(BaseModel):
    is_following: bool


class FollowersResponse(BaseModel):
    followers: List[UserSummary]
    total: int


class FollowingResponse(BaseModel):
    following: List[UserSummary]
    total: int
