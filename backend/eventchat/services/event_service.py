"""
Event service: creation, editing, RSVP, invitations and event listings.
"""
import logging
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session, selectinload
from eventchat.core.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, ValidationError
)
from eventchat.core.utils import page_offset, utcnow
from eventchat.models.event import Event, EventAttendee, RSVPStatus
from eventchat.models.notification import NotificationType
from eventchat.models.user import User
from eventchat.schemas.event import EventCreate, EventUpdate
from eventchat.services import image_service, location_service, notification_service, spatial_service

logger = logging.getLogger(__name__)


def get_event(db: Session, event_id: int) -> Event:
    event = db.query(Event).options(
        selectinload(Event.creator),
        selectinload(Event.attendees).selectinload(EventAttendee.user)
    ).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


def _get_owned(db: Session, user: User, event_id: int, action: str) -> Event:
    event = get_event(db, event_id)
    if event.creator_id != user.id:
        raise AuthorizationError(f"You can only {action} your own events")
    return event


async def create_event(db: Session, user: User, event_data: EventCreate) -> Event:
    """
    Create an event at the creator's current city.

    The creator is recorded as the first "yes" attendee.
    """
    location_service.require_current_city(user)
    image_url = await image_service.upload_image(event_data.image)

    event = Event(
        title=event_data.title,
        description=event_data.description,
        creator_id=user.id,
        city=user.current_city,
        state=user.current_state,
        country=user.current_country,
        lng=user.current_lng,
        lat=user.current_lat,
        venue=event_data.venue or "",
        date=event_data.date,
        end_date=event_data.end_date,
        category=event_data.category,
        max_attendees=event_data.max_attendees,
        is_private=event_data.is_private,
        image=image_url,
        tags=list(event_data.tags),
    )
    event.attendees.append(EventAttendee(user_id=user.id, status=RSVPStatus.YES))
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info(f"User {user.id} created event {event.id} in {event.city}")
    return event


async def update_event(db: Session, user: User, event_id: int, event_data: EventUpdate) -> Event:
    """Replace an event's editable fields. Only the creator may edit."""
    event = _get_owned(db, user, event_id, "edit")
    if event_data.date <= utcnow():
        raise ValidationError("Event date must be in the future")

    # An omitted image keeps the current one
    if event_data.image:
        event.image = await image_service.upload_image(event_data.image)

    event.title = event_data.title
    event.description = event_data.description
    event.date = event_data.date
    event.end_date = event_data.end_date
    event.category = event_data.category
    event.max_attendees = event_data.max_attendees
    event.is_private = event_data.is_private
    event.venue = event_data.venue or ""
    event.tags = list(event_data.tags)

    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, user: User, event_id: int) -> None:
    event = _get_owned(db, user, event_id, "delete")
    db.delete(event)
    db.commit()
    logger.info(f"User {user.id} deleted event {event_id}")


def _parse_status(value: str) -> RSVPStatus:
    try:
        return RSVPStatus(value)
    except ValueError:
        raise ValidationError("Invalid RSVP status")


async def rsvp(db: Session, user: User, event_id: int, status_value: str) -> dict:
    """
    Record the user's RSVP (one row per user per event).

    Capacity only limits "yes": the check counts the "yes" RSVPs of other
    users, so changing to "no" or "maybe", or repeating "yes", is never blocked.
    """
    status = _parse_status(status_value)
    event = get_event(db, event_id)

    if status == RSVPStatus.YES and event.max_attendees:
        others_attending = sum(
            1 for a in event.attendees
            if a.status == RSVPStatus.YES and a.user_id != user.id
        )
        if others_attending >= event.max_attendees:
            raise ConflictError("Event is at capacity")

    attendee = event.rsvp_for(user.id)
    if attendee:
        attendee.status = status
        attendee.rsvp_date = utcnow()
    else:
        event.attendees.append(EventAttendee(user_id=user.id, status=status, rsvp_date=utcnow()))

    notification = None
    if status == RSVPStatus.YES:
        notification = notification_service.create_notification(
            db,
            recipient_id=event.creator_id,
            sender_id=user.id,
            notification_type=NotificationType.EVENT_RSVP,
            message=f'{user.username} is attending your event "{event.title}"',
            related_event_id=event.id
        )
    db.commit()

    if notification is not None:
        db.refresh(notification)
        await notification_service.deliver(notification)

    event = get_event(db, event_id)
    return {
        "message": f"RSVP updated to {status.value}",
        "user_rsvp": status.value,
        "attendee_count": event.attendee_count,
        "attendees": event.attendees,
    }


async def invite(db: Session, user: User, event_id: int, invitee_id: int) -> None:
    """Invite another user. Only the creator or a "yes" attendee may invite."""
    event = get_event(db, event_id)
    if event.creator_id != user.id and event.user_rsvp(user.id) != RSVPStatus.YES.value:
        raise AuthorizationError("You must be attending the event to invite others")

    invitee = db.query(User).filter(User.id == invitee_id).first()
    if not invitee:
        raise NotFoundError("User not found")

    await notification_service.notify(
        db,
        recipient_id=invitee.id,
        sender_id=user.id,
        notification_type=NotificationType.EVENT_INVITE,
        message=f'{user.username} invited you to "{event.title}"',
        related_event_id=event.id
    )


def list_nearby_events(
    db: Session, user: User, page: int = 1, limit: int = 10
) -> List[Tuple[Event, float]]:
    """Upcoming public events around the user's effective search origin."""
    return spatial_service.find_nearby_events(
        db,
        location_service.effective_origin(user),
        location_service.effective_radius(user),
        page=page,
        limit=limit
    )


def _attended_events_query(db: Session, user_id: int, statuses: List[RSVPStatus]):
    return db.query(Event).options(
        selectinload(Event.creator),
        selectinload(Event.attendees)
    ).join(
        EventAttendee, EventAttendee.event_id == Event.id
    ).filter(
        EventAttendee.user_id == user_id,
        EventAttendee.status.in_(statuses)
    )


def list_my_events(
    db: Session, user: User, page: int = 1, limit: int = 10
) -> List[Tuple[Event, str, float]]:
    """
    Events the user is attending, soonest first.

    Only "yes" RSVPs are listed; "maybe" events are left out.
    """
    events = _attended_events_query(db, user.id, [RSVPStatus.YES]).order_by(
        Event.date.asc(), Event.id.asc()
    ).offset(page_offset(page, limit)).limit(limit).all()

    return [
        (event, RSVPStatus.YES.value, spatial_service.distance_from_user(user, event.coordinates))
        for event in events
    ]


def list_user_rsvped_events(
    db: Session, viewer: User, user_id: int, page: int = 1, limit: int = 10
) -> List[Tuple[Event, Optional[str], float]]:
    """Public events another user answered "yes" or "maybe" to, with distances from the viewer."""
    events = _attended_events_query(
        db, user_id, [RSVPStatus.YES, RSVPStatus.MAYBE]
    ).filter(
        Event.is_private.is_(False)
    ).order_by(
        Event.date.asc(), Event.id.asc()
    ).offset(page_offset(page, limit)).limit(limit).all()

    results = []
    for event in events:
        attendee = event.rsvp_for(user_id)
        results.append((
            event,
            attendee.status.value if attendee else None,
            spatial_service.distance_from_user(viewer, event.coordinates)
        ))
    return results
