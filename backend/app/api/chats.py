"""Chat API endpoints, including chat invite links."""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user, get_token_codecs
from app.core import get_db, settings
from app.core.exceptions import ValidationError
from app.schemas.auth import MessageResponse
from app.schemas.chat import ChatCreate, ChatCreatedResponse, ChatListResponse, ChatSummary
from app.schemas.invite import InviteAcceptedResponse, InviteCreate, InviteResponse
from app.services.auth import AuthService, Principal
from app.services.chat import ChatService
from app.services.invites import InviteResource, InviteService
from app.services.tokens import TokenCodecs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["chats"])


def get_chat_service(db: AsyncSession = Depends(get_db)) -> ChatService:
    """Dependency to get chat service."""
    return ChatService(db)


def get_chat_invite_service(
    db: AsyncSession = Depends(get_db),
    chats: ChatService = Depends(get_chat_service),
    codecs: TokenCodecs = Depends(get_token_codecs),
) -> InviteService:
    return InviteService(
        InviteResource.CHAT,
        codecs.invite,
        memberships=chats,
        users=AuthService(db),
        base_url=settings.base_url,
        ttl=timedelta(hours=settings.invite_token_expire_hours),
    )


@router.post("/create", response_model=ChatCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(
    data: ChatCreate,
    principal: Principal = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service),
) -> ChatCreatedResponse:
    """Create an individual or group chat."""
    chat = await chats.create(principal.user_id, data.chat_name, data.user_ids)
    return ChatCreatedResponse(message="Chat created successfully", chat_id=chat.id)


@router.get("", response_model=ChatListResponse)
async def list_chats(
    principal: Principal = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service),
) -> ChatListResponse:
    """List all chats the current user belongs to."""
    found = await chats.list_for_user(principal.user_id)
    return ChatListResponse(chats=[ChatSummary.from_chat(chat) for chat in found])


# Registered before the /{chat_id} routes so "invite" is not read as an id
@router.get("/invite/accept", response_model=InviteAcceptedResponse)
async def accept_chat_invite(
    token: str | None = Query(None),
    principal: Principal = Depends(get_current_user),
    invites: InviteService = Depends(get_chat_invite_service),
) -> InviteAcceptedResponse:
    """Join a chat through an invite link."""
    if not token:
        raise ValidationError("Invite token is required.")
    accepted = await invites.accept_invite(token, principal.user_id)
    message = (
        "Successfully joined the chat."
        if accepted.joined
        else "You are already a member of this chat."
    )
    return InviteAcceptedResponse(message=message, resource_id=accepted.resource_id)


@router.post("/leave/{chat_id}", response_model=MessageResponse)
async def leave_chat(
    chat_id: int,
    principal: Principal = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service),
) -> MessageResponse:
    await chats.leave(chat_id, principal.user_id)
    return MessageResponse(message="Left chat successfully")


@router.delete("/{chat_id}", response_model=MessageResponse)
async def delete_chat(
    chat_id: int,
    principal: Principal = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service),
) -> MessageResponse:
    """Delete a chat (creator only). Outstanding invites stop working."""
    await chats.delete(chat_id, principal.user_id)
    return MessageResponse(message="Chat deleted successfully")


@router.post("/{chat_id}/invite", response_model=InviteResponse)
async def send_chat_invite(
    chat_id: int,
    data: InviteCreate,
    principal: Principal = Depends(get_current_user),
    invites: InviteService = Depends(get_chat_invite_service),
) -> InviteResponse:
    """Create an invite link for another user to join this chat.

    The link is returned to the caller; delivering it is up to the client.
    """
    link = await invites.create_invite(chat_id, principal.user_id, data.invitee_user_id)
    return InviteResponse(
        message="Invite sent successfully",
        invite_link=link.url,
        expires_at=link.expires_at,
    )
