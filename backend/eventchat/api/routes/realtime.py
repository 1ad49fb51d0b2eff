"""
Real-time channel: presence list and notification push over a websocket.
"""
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from eventchat.api.dependencies import websocket_user
from eventchat.core.exceptions import AppError
from eventchat.db.session import get_db
from eventchat.schemas.notification import SendNotificationPayload
from eventchat.services import notification_service
from eventchat.services.presence import presence

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

SEND_NOTIFICATION_EVENT = "sendNotification"


async def _handle_message(db: Session, user_id: int, message: dict) -> None:
    """Handle one client message. Unknown events are ignored."""
    if not isinstance(message, dict) or message.get("event") != SEND_NOTIFICATION_EVENT:
        return
    try:
        payload = SendNotificationPayload.model_validate(message.get("data") or {})
    except SchemaValidationError as e:
        logger.warning(f"Ignoring malformed notification from user {user_id}: {e}")
        return

    try:
        await notification_service.notify(
            db,
            recipient_id=payload.recipient_id,
            sender_id=user_id,
            notification_type=payload.type,
            message=payload.message,
            related_post_id=payload.related_post_id,
            related_event_id=payload.related_event_id
        )
    except AppError as e:
        logger.warning(f"Notification from user {user_id} rejected: {e.message}")
    except SQLAlchemyError:
        logger.warning(f"Notification from user {user_id} dropped after a database error")


@router.websocket("/ws")
async def realtime(websocket: WebSocket, db: Session = Depends(get_db)):
    user = websocket_user(websocket, db)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = user.id
    await websocket.accept()
    await presence.connect(user_id, websocket)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.warning(f"Ignoring non-JSON frame from user {user_id}")
                continue
            await _handle_message(db, user_id, message)
    except WebSocketDisconnect:
        pass
    finally:
        await presence.disconnect(user_id, websocket)
