"""
Post routes: creation, feeds, likes and deletion.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from eventchat.db.session import get_db
from eventchat.models.user import User
from eventchat.schemas.post import PostCreate, PostResponse, LikeToggleResponse
from eventchat.api.dependencies import get_current_user
from eventchat.services import post_service

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a post in the caller's current city."""
    post = await post_service.create_post(db, current_user, post_data)
    return PostResponse.from_post(post)


@router.get("/following", response_model=List[PostResponse])
async def following_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Posts from followed users, newest first."""
    posts = post_service.list_following_posts(db, current_user, page, limit)
    return [PostResponse.from_post(post) for post in posts]


@router.get("/nearby", response_model=List[PostResponse])
async def nearby_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Posts within the caller's radius, newest first."""
    results = post_service.list_nearby_posts(db, current_user, page, limit)
    return [PostResponse.from_post(post, distance_in_miles=miles) for post, miles in results]


@router.get("/mine", response_model=List[PostResponse])
async def my_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's own posts."""
    posts = post_service.list_my_posts(db, current_user, page, limit)
    return [PostResponse.from_post(post) for post in posts]


@router.get("/user/{user_id}", response_model=List[PostResponse])
async def user_posts(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Posts by a given user."""
    posts = post_service.list_user_posts(db, user_id, page, limit)
    return [PostResponse.from_post(post) for post in posts]


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def like_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Like or unlike a post."""
    return await post_service.toggle_like(db, current_user, post_id)


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a post (author only)."""
    post_service.delete_post(db, current_user, post_id)
    return {"message": "Post deleted successfully"}
