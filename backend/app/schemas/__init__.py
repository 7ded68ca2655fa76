# Spectrum Sync Pydantic Schemas
from app.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from app.schemas.chat import ChatCreate, ChatCreatedResponse, ChatListResponse, ChatSummary
from app.schemas.event import (
    EventCreate,
    EventCreatedResponse,
    EventResponse,
    InvitationsResponse,
    RsvpRequest,
)
from app.schemas.invite import InviteAcceptedResponse, InviteCreate, InviteResponse

__all__ = [
    "AuthResponse",
    "ChatCreate",
    "ChatCreatedResponse",
    "ChatListResponse",
    "ChatSummary",
    "EventCreate",
    "EventCreatedResponse",
    "EventResponse",
    "InvitationsResponse",
    "InviteAcceptedResponse",
    "InviteCreate",
    "InviteResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "RsvpRequest",
    "UserResponse",
]
