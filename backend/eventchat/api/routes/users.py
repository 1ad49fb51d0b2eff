"""
User lookup routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from eventchat.db.session import get_db
from eventchat.schemas.user import PublicProfileResponse, UserSummary
from eventchat.models.user import User
from eventchat.api.dependencies import get_current_user
from eventchat.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=List[UserSummary])
async def search_users(
    q: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Search users by username or full name."""
    return user_service.search_users(db, q, exclude_user_id=current_user.id)


@router.get("/{identifier}", response_model=PublicProfileResponse)
async def get_user(
    identifier: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a public profile by user id or username."""
    user = user_service.get_by_identifier(db, identifier)
    return PublicProfileResponse.from_user(user)
