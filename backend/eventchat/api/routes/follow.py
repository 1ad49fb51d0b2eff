"""
Follow graph routes.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from eventchat.db.session import get_db
from eventchat.models.user import User
from eventchat.schemas.follow import FollowStatusResponse, FollowersResponse, FollowingResponse
from eventchat.api.dependencies import get_current_user
from eventchat.services import follow_service

router = APIRouter(prefix="/follow", tags=["follow"])


@router.post("/follow/{user_id}")
async def follow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Follow a user."""
    await follow_service.follow(db, current_user, user_id)
    return {"message": "User followed successfully"}


@router.post("/unfollow/{user_id}")
async def unfollow_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Unfollow a user; succeeds even if not following."""
    follow_service.unfollow(db, current_user, user_id)
    return {"message": "User unfollowed successfully"}


@router.get("/status/{user_id}", response_model=FollowStatusResponse)
async def follow_status(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Whether the caller follows the given user."""
    return {"is_following": follow_service.is_following(db, current_user.id, user_id)}


@router.get("/followers/{user_id}", response_model=FollowersResponse)
async def followers(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return follow_service.list_followers(db, user_id, page, limit)


@router.get("/following/{user_id}", response_model=FollowingResponse)
async def following(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return follow_service.list_following(db, user_id, page, limit)
