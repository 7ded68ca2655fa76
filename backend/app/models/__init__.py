# Spectrum Sync Models
from app.models.base import BaseModel
from app.models.chat import Chat, ChatMember
from app.models.event import AttendeeStatus, Event, EventAttendee
from app.models.token_blacklist import TokenBlacklist
from app.models.user import User

__all__ = [
    "AttendeeStatus",
    "BaseModel",
    "Chat",
    "ChatMember",
    "Event",
    "EventAttendee",
    "TokenBlacklist",
    "User",
]
