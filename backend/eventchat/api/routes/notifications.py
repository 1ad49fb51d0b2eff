"""
Notification inbox routes.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from eventchat.db.session import get_db
from eventchat.models.user import User
from eventchat.schemas.notification import NotificationListResponse, NotificationResponse
from eventchat.api.dependencies import get_current_user
from eventchat.services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Newest notifications first, with the unread count."""
    return notification_service.list_notifications(db, current_user.id, page, limit)


@router.put("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark every notification as read."""
    updated = notification_service.mark_all_read(db, current_user.id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark one notification as read."""
    return notification_service.mark_read(db, current_user.id, notification_id)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    notification_service.delete_notification(db, current_user.id, notification_id)
    return {"message": "Notification deleted"}
