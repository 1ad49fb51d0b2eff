"""
Post service: creation, feeds, likes and deletion.
"""
import logging
from typing import List, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from eventchat.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from eventchat.core.utils import page_offset
from eventchat.models.event import Event
from eventchat.models.follow import Follow
from eventchat.models.notification import NotificationType
from eventchat.models.post import Post, PostLike
from eventchat.models.user import User
from eventchat.schemas.post import PostCreate
from eventchat.services import image_service, location_service, notification_service, spatial_service

logger = logging.getLogger(__name__)


def _posts_query(db: Session):
    return db.query(Post).options(
        selectinload(Post.author),
        selectinload(Post.event),
        selectinload(Post.likes)
    )


def _newest_page(query, page: int, limit: int) -> List[Post]:
    return query.order_by(
        Post.created_at.desc(), Post.id.desc()
    ).offset(page_offset(page, limit)).limit(limit).all()


def get_post(db: Session, post_id: int) -> Post:
    post = _posts_query(db).filter(Post.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")
    return post


async def create_post(db: Session, user: User, post_data: PostCreate) -> Post:
    """Create a post pinned to the author's current city."""
    if not post_data.content and not post_data.image:
        raise ValidationError("Content or image is required")
    location_service.require_current_city(user)

    if post_data.event_id is not None:
        if not db.query(Event.id).filter(Event.id == post_data.event_id).first():
            raise NotFoundError("Event not found")

    image_url = await image_service.upload_image(post_data.image)

    post = Post(
        content=post_data.content or "",
        author_id=user.id,
        city=user.current_city,
        state=user.current_state,
        country=user.current_country,
        lng=user.current_lng,
        lat=user.current_lat,
        image=image_url,
        type=post_data.type,
        event_id=post_data.event_id,
    )
    db.add(post)
    db.commit()

    logger.info(f"User {user.id} created post {post.id}")
    return get_post(db, post.id)


def list_following_posts(db: Session, user: User, page: int = 1, limit: int = 10) -> List[Post]:
    """Posts by the users the caller follows."""
    followed_ids = db.query(Follow.following_id).filter(Follow.follower_id == user.id)
    query = _posts_query(db).filter(Post.author_id.in_(followed_ids))
    return _newest_page(query, page, limit)


def list_user_posts(db: Session, user_id: int, page: int = 1, limit: int = 10) -> List[Post]:
    return _newest_page(_posts_query(db).filter(Post.author_id == user_id), page, limit)


def list_my_posts(db: Session, user: User, page: int = 1, limit: int = 10) -> List[Post]:
    return list_user_posts(db, user.id, page, limit)


def list_nearby_posts(
    db: Session, user: User, page: int = 1, limit: int = 10
) -> List[Tuple[Post, float]]:
    """Posts around the user's effective search origin, newest first."""
    return spatial_service.find_nearby_posts(
        db,
        location_service.effective_origin(user),
        location_service.effective_radius(user),
        page=page,
        limit=limit
    )


async def toggle_like(db: Session, user: User, post_id: int) -> dict:
    """
    Like the post if the user has not liked it yet, otherwise remove the like.

    Liking someone else's post notifies the author in the same transaction.
    """
    post = get_post(db, post_id)
    existing = next((like for like in post.likes if like.user_id == user.id), None)

    notification = None
    if existing:
        post.likes.remove(existing)
    else:
        post.likes.append(PostLike(user_id=user.id))
        notification = notification_service.create_notification(
            db,
            recipient_id=post.author_id,
            sender_id=user.id,
            notification_type=NotificationType.LIKE_POST,
            message=f"{user.username} liked your post",
            related_post_id=post.id
        )

    try:
        db.commit()
    except IntegrityError:
        # Concurrent duplicate like; the stored state already has the like
        db.rollback()
        notification = None

    if notification is not None:
        db.refresh(notification)
        await notification_service.deliver(notification)

    db.refresh(post)
    likes = post.like_user_ids
    return {
        "is_liked": user.id in likes,
        "like_count": len(likes),
        "likes": likes,
    }


def delete_post(db: Session, user: User, post_id: int) -> None:
    post = get_post(db, post_id)
    if post.author_id != user.id:
        raise AuthorizationError("You can only delete your own posts")
    db.delete(post)
    db.commit()
    logger.info(f"User {user.id} deleted post {post_id}")
