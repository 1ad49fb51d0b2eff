"""
Follow graph service.

The follows table is the only record of who follows whom; ``User.followers`` and
``User.following`` are read from it, so both sides of an edge change together.
"""
import logging
from typing import List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from eventchat.core.exceptions import ConflictError, NotFoundError
from eventchat.core.utils import page_offset
from eventchat.models.follow import Follow
from eventchat.models.notification import NotificationType
from eventchat.models.user import User
from eventchat.services import notification_service

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _edge(db: Session, follower_id: int, following_id: int):
    return db.query(Follow).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id
    ).first()


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return _edge(db, follower_id, following_id) is not None


async def follow(db: Session, follower: User, target_id: int) -> Follow:
    """
    Create the follow edge and the target's notification in one transaction,
    then push the notification.
    """
    if follower.id == target_id:
        raise ConflictError("You cannot follow yourself")
    target = _get_user(db, target_id)
    if is_following(db, follower.id, target.id):
        raise ConflictError("Already following this user")

    edge = Follow(follower_id=follower.id, following_id=target.id)
    db.add(edge)
    notification = notification_service.create_notification(
        db,
        recipient_id=target.id,
        sender_id=follower.id,
        notification_type=NotificationType.FOLLOW,
        message=f"{follower.username} started following you"
    )
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request created the same edge first
        db.rollback()
        raise ConflictError("Already following this user")

    logger.info(f"User {follower.id} followed user {target.id}")
    if notification is not None:
        db.refresh(notification)
        await notification_service.deliver(notification)
    return edge


def unfollow(db: Session, follower: User, target_id: int) -> bool:
    """Remove the edge if present. Returns whether anything was removed."""
    deleted = db.query(Follow).filter(
        Follow.follower_id == follower.id,
        Follow.following_id == target_id
    ).delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info(f"User {follower.id} unfollowed user {target_id}")
    return bool(deleted)


def _page_of_users(query, page: int, limit: int) -> List[User]:
    return query.order_by(Follow.id.desc()).offset(page_offset(page, limit)).limit(limit).all()


def list_followers(db: Session, user_id: int, page: int = 1, limit: int = 20) -> dict:
    """Users following ``user_id``, most recent first."""
    _get_user(db, user_id)
    query = db.query(User).join(Follow, Follow.follower_id == User.id).filter(
        Follow.following_id == user_id
    )
    total = query.count()
    return {"followers": _page_of_users(query, page, limit), "total": total}


def list_following(db: Session, user_id: int, page: int = 1, limit: int = 20) -> dict:
    """Users that ``user_id`` follows, most recent first."""
    _get_user(db, user_id)
    query = db.query(User).join(Follow, Follow.following_id == User.id).filter(
        Follow.follower_id == user_id
    )
    total = query.count()
    return {"following": _page_of_users(query, page, limit), "total": total}
