"""
Notification service: creation, real-time delivery and inbox operations.
"""
import logging
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from eventchat.core.exceptions import NotFoundError
from eventchat.core.utils import page_offset
from eventchat.models.event import Event
from eventchat.models.notification import Notification, NotificationType
from eventchat.models.post import Post
from eventchat.models.user import User
from eventchat.schemas.notification import NotificationResponse
from eventchat.services.presence import presence, NEW_NOTIFICATION_EVENT

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    recipient_id: int,
    sender_id: int,
    notification_type: NotificationType,
    message: str,
    related_post_id: Optional[int] = None,
    related_event_id: Optional[int] = None
) -> Optional[Notification]:
    """
    Add a notification to the session without committing.

    Users are never notified about their own actions, so nothing is added and
    None is returned when recipient and sender are the same user.
    """
    if recipient_id == sender_id:
        return None

    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=notification_type,
        message=message,
        related_post_id=related_post_id,
        related_event_id=related_event_id
    )
    db.add(notification)
    return notification


def _check_references(
    db: Session,
    recipient_id: int,
    related_post_id: Optional[int],
    related_event_id: Optional[int]
) -> None:
    if db.query(User.id).filter(User.id == recipient_id).first() is None:
        raise NotFoundError("User not found")
    if related_post_id is not None and db.query(Post.id).filter(Post.id == related_post_id).first() is None:
        raise NotFoundError("Post not found")
    if related_event_id is not None and db.query(Event.id).filter(Event.id == related_event_id).first() is None:
        raise NotFoundError("Event not found")


def serialize_notification(notification: Notification) -> dict:
    return NotificationResponse.model_validate(notification).model_dump(mode="json")


async def deliver(notification: Optional[Notification]) -> bool:
    """Push a committed notification to its recipient if they are connected."""
    if notification is None:
        return False
    if not presence.is_online(notification.recipient_id):
        return False
    payload = serialize_notification(notification)
    delivered = await presence.send_to(
        notification.recipient_id,
        {"event": NEW_NOTIFICATION_EVENT, "data": payload}
    )
    if delivered:
        logger.debug(f"Pushed notification {notification.id} to user {notification.recipient_id}")
    return delivered


async def notify(
    db: Session,
    recipient_id: int,
    sender_id: int,
    notification_type: NotificationType,
    message: str,
    related_post_id: Optional[int] = None,
    related_event_id: Optional[int] = None
) -> Optional[Notification]:
    """
    Create, commit and push a notification in one step.

    The recipient and any related post or event must exist. A failed commit
    is rolled back so the session stays usable.
    """
    _check_references(db, recipient_id, related_post_id, related_event_id)
    notification = create_notification(
        db, recipient_id, sender_id, notification_type, message,
        related_post_id=related_post_id, related_event_id=related_event_id
    )
    if notification is None:
        return None
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save notification for user {recipient_id}: {e}")
        raise
    db.refresh(notification)
    await deliver(notification)
    return notification


def list_notifications(db: Session, recipient_id: int, page: int = 1, limit: int = 20) -> dict:
    """Newest-first page of a user's notifications with the live unread count."""
    notifications = db.query(Notification).options(
        selectinload(Notification.sender),
        selectinload(Notification.related_post),
        selectinload(Notification.related_event)
    ).filter(
        Notification.recipient_id == recipient_id
    ).order_by(
        Notification.created_at.desc(), Notification.id.desc()
    ).offset(page_offset(page, limit)).limit(limit).all()

    return {
        "notifications": notifications,
        "unread_count": count_unread(db, recipient_id)
    }


def count_unread(db: Session, recipient_id: int) -> int:
    return db.query(Notification).filter(
        Notification.recipient_id == recipient_id,
        Notification.is_read.is_(False)
    ).count()


def _get_owned(db: Session, recipient_id: int, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.recipient_id == recipient_id
    ).first()
    if not notification:
        raise NotFoundError("Notification not found")
    return notification


def mark_read(db: Session, recipient_id: int, notification_id: int) -> Notification:
    """Mark one of the recipient's notifications as read."""
    notification = _get_owned(db, recipient_id, notification_id)
    if not notification.is_read:
        notification.is_read = True
        db.commit()
    return notification


def mark_all_read(db: Session, recipient_id: int) -> int:
    """Mark every unread notification of the recipient as read."""
    updated = db.query(Notification).filter(
        Notification.recipient_id == recipient_id,
        Notification.is_read.is_(False)
    ).update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return updated


def delete_notification(db: Session, recipient_id: int, notification_id: int) -> None:
    notification = _get_owned(db, recipient_id, notification_id)
    db.delete(notification)
    db.commit()
