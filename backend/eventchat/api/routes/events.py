"""
Event routes: CRUD, nearby discovery, RSVP and invitations.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List
from eventchat.db.session import get_db
from eventchat.models.user import User
from eventchat.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventDetailResponse,
    RSVPRequest, RSVPResponse, EventInvite
)
from eventchat.api.dependencies import get_current_user
from eventchat.services import event_service

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create an event in the caller's current city."""
    event = await event_service.create_event(db, current_user, event_data)
    return EventResponse.from_event(event, user_rsvp="yes")


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    event_data: EventUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Edit an event (creator only)."""
    event = await event_service.update_event(db, current_user, event_id, event_data)
    return EventResponse.from_event(event, user_rsvp=event.user_rsvp(current_user.id))


@router.get("/nearby", response_model=List[EventResponse])
async def nearby_events(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Upcoming public events within the caller's radius, soonest first."""
    results = event_service.list_nearby_events(db, current_user, page, limit)
    return [
        EventResponse.from_event(event, user_rsvp=event.user_rsvp(current_user.id), distance_in_miles=miles)
        for event, miles in results
    ]


@router.get("/my-events", response_model=List[EventResponse])
async def my_events(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Events the caller is attending."""
    results = event_service.list_my_events(db, current_user, page, limit)
    return [
        EventResponse.from_event(event, user_rsvp=rsvp, distance_in_miles=miles)
        for event, rsvp, miles in results
    ]


@router.get("/user/{user_id}/rsvped", response_model=List[EventResponse])
async def user_rsvped_events(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Public events another user has said yes or maybe to."""
    results = event_service.list_user_rsvped_events(db, current_user, user_id, page, limit)
    return [
        EventResponse.from_event(event, user_rsvp=rsvp, distance_in_miles=miles)
        for event, rsvp, miles in results
    ]


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get event details with attendees and the caller's RSVP."""
    event = event_service.get_event(db, event_id)
    return EventDetailResponse.from_event(event, user_rsvp=event.user_rsvp(current_user.id))


@router.post("/{event_id}/rsvp", response_model=RSVPResponse)
async def rsvp_event(
    event_id: int,
    rsvp: RSVPRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """RSVP yes, no or maybe."""
    return await event_service.rsvp(db, current_user, event_id, rsvp.status)


@router.post("/{event_id}/invite")
async def invite_to_event(
    event_id: int,
    invite: EventInvite,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Invite a user to an event."""
    await event_service.invite(db, current_user, event_id, invite.user_id)
    return {"message": "Invitation sent successfully"}


@router.delete("/{event_id}")
async def delete_event(
    event_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an event (creator only)."""
    event_service.delete_event(db, current_user, event_id)
    return {"message": "Event deleted successfully"}
