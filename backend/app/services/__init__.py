# Spectrum Sync Services
from app.services.auth import AuthService, Principal
from app.services.blacklist import TokenBlacklistStore
from app.services.chat import ChatService
from app.services.event import EventService
from app.services.invites import InviteResource, InviteService
from app.services.session import SessionAuthenticator
from app.services.tokens import TokenCodec, build_token_codecs

__all__ = [
    "AuthService",
    "ChatService",
    "EventService",
    "InviteResource",
    "InviteService",
    "Principal",
    "SessionAuthenticator",
    "TokenBlacklistStore",
    "TokenCodec",
    "build_token_codecs",
]
