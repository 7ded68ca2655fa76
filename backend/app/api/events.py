"""Event API endpoints: events, RSVPs and event invite links."""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user, get_token_codecs
from app.core import get_db, settings
from app.core.exceptions import ValidationError
from app.schemas.auth import MessageResponse
from app.schemas.event import (
    EventCreate,
    EventCreatedResponse,
    EventResponse,
    InvitationsResponse,
    RsvpRequest,
)
from app.schemas.invite import InviteAcceptedResponse, InviteCreate, InviteResponse
from app.services.auth import AuthService, Principal
from app.services.event import EventService
from app.services.invites import InviteResource, InviteService
from app.services.tokens import TokenCodecs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(db: AsyncSession = Depends(get_db)) -> EventService:
    """Dependency to get event service."""
    return EventService(db)


def get_event_invite_service(
    db: AsyncSession = Depends(get_db),
    events: EventService = Depends(get_event_service),
    codecs: TokenCodecs = Depends(get_token_codecs),
) -> InviteService:
    return InviteService(
        InviteResource.EVENT,
        codecs.invite,
        memberships=events,
        users=AuthService(db),
        base_url=settings.base_url,
        ttl=timedelta(hours=settings.invite_token_expire_hours),
    )


@router.post("", response_model=EventCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    principal: Principal = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
) -> EventCreatedResponse:
    event = await events.create(
        principal.user_id,
        title=data.title,
        date=data.date,
        description=data.description,
        location=data.location,
    )
    return EventCreatedResponse(
        message="Event created successfully", event=EventResponse.from_event(event)
    )


@router.get("/invitations", response_model=InvitationsResponse)
async def list_invitations(
    principal: Principal = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
) -> InvitationsResponse:
    """Events the current user was invited to and has not answered yet."""
    pending = await events.pending_invitations(principal.user_id)
    return InvitationsResponse(
        message="Invitations retrieved successfully",
        invitations=[EventResponse.from_event(event) for event in pending],
    )


@router.get("/invite/accept", response_model=InviteAcceptedResponse)
async def accept_event_invite(
    token: str | None = Query(None),
    principal: Principal = Depends(get_current_user),
    invites: InviteService = Depends(get_event_invite_service),
) -> InviteAcceptedResponse:
    """Accept a shared event. The event then shows up as a pending invitation."""
    if not token:
        raise ValidationError("Invite token is required.")
    accepted = await invites.accept_invite(token, principal.user_id)
    message = (
        "Event invitation accepted."
        if accepted.joined
        else "You are already part of this event."
    )
    return InviteAcceptedResponse(message=message, resource_id=accepted.resource_id)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    principal: Principal = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
) -> EventResponse:
    event = await events.get_for_user(event_id, principal.user_id)
    return EventResponse.from_event(event)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: int,
    principal: Principal = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
) -> MessageResponse:
    await events.delete(event_id, principal.user_id)
    return MessageResponse(message="Event deleted successfully")


@router.post("/{event_id}/attend", response_model=MessageResponse)
async def attend_event(
    event_id: int,
    data: RsvpRequest,
    principal: Principal = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
) -> MessageResponse:
    """RSVP to an event as "Attending" or "Not Attending"."""
    message = await events.rsvp(event_id, principal.user_id, data.status)
    return MessageResponse(message=message)


@router.post("/{event_id}/invite", response_model=InviteResponse)
async def share_event(
    event_id: int,
    data: InviteCreate,
    principal: Principal = Depends(get_current_user),
    invites: InviteService = Depends(get_event_invite_service),
) -> InviteResponse:
    """Share an event with another user through an invite link."""
    link = await invites.create_invite(event_id, principal.user_id, data.invitee_user_id)
    return InviteResponse(
        message="Event shared successfully",
        invite_link=link.url,
        expires_at=link.expires_at,
    )
