"""Per-request bearer authentication.

``SessionAuthenticator.authenticate`` walks the request's Authorization
header through a fixed sequence and ends in exactly one of two states:

    Authenticated(principal)  or  Rejected(reason)

1. header present?                 -> MISSING_HEADER
2. exactly "Bearer <token>"?       -> BAD_SCHEME
3. token digest on the blacklist?  -> BLACKLISTED
4. signature / domain valid?       -> INVALID
5. not past expiry?                -> EXPIRED

The blacklist lookup runs before signature verification and does not
depend on it, so a revoked token is refused even while its signature is
still good. Storage failures are not a rejection: they propagate as
StorageError.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from app.core.exceptions import AuthenticationError
from app.services.auth import Principal
from app.services.blacklist import TokenBlacklistStore
from app.services.tokens import InvalidTokenError, TokenCodec, TokenExpiredError, token_digest

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


class RejectionReason(str, Enum):
    MISSING_HEADER = "missing_header"
    BAD_SCHEME = "bad_scheme"
    BLACKLISTED = "blacklisted"
    EXPIRED = "expired"
    INVALID = "invalid"


# Client-facing text. Expired and forged tokens are told apart in logs only
# as far as these categories go.
REJECTION_MESSAGES: dict[RejectionReason, str] = {
    RejectionReason.MISSING_HEADER: (
        "Authorization header is required. Please provide a valid token."
    ),
    RejectionReason.BAD_SCHEME: 'Authorization format is invalid. Use "Bearer <token>".',
    RejectionReason.BLACKLISTED: "Token is no longer valid. Please log in again.",
    RejectionReason.EXPIRED: "Token has expired. Please log in again.",
    RejectionReason.INVALID: "Invalid token. Please provide a valid token.",
}


@dataclass(frozen=True)
class Authenticated:
    principal: Principal
    token: str
    expires_at: int


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason

    @property
    def message(self) -> str:
        return REJECTION_MESSAGES[self.reason]

    def to_error(self) -> AuthenticationError:
        return AuthenticationError(self.message, reason=self.reason.value)


AuthResult = Authenticated | Rejected


def parse_bearer(authorization: str | None) -> str | Rejected:
    """Extract the token from an Authorization header value."""
    if not authorization:
        return Rejected(RejectionReason.MISSING_HEADER)
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        return Rejected(RejectionReason.BAD_SCHEME)
    return parts[1]


class SessionAuthenticator:
    """Gate every protected request on a valid, unrevoked auth token."""

    def __init__(self, codec: TokenCodec, blacklist: TokenBlacklistStore):
        self.codec = codec
        self.blacklist = blacklist

    async def authenticate(self, authorization: str | None) -> AuthResult:
        parsed = parse_bearer(authorization)
        if isinstance(parsed, Rejected):
            logger.warning(f"Rejected request: {parsed.reason.value}")
            return parsed
        token = parsed

        if await self.blacklist.is_revoked(token):
            logger.warning(f"Rejected blacklisted token {token_digest(token)[:12]}")
            return Rejected(RejectionReason.BLACKLISTED)

        try:
            verified = self.codec.decode(token)
        except TokenExpiredError:
            logger.info("Rejected expired token")
            return Rejected(RejectionReason.EXPIRED)
        except InvalidTokenError as e:
            logger.warning(f"Rejected invalid token: {e}")
            return Rejected(RejectionReason.INVALID)

        user_id = verified.claims.get("userId")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.warning("Rejected token without a usable userId claim")
            return Rejected(RejectionReason.INVALID)

        role = verified.claims.get("role")
        principal = Principal(user_id=user_id, role=role if isinstance(role, str) else None)
        logger.debug(f"Authenticated user {user_id}")
        return Authenticated(principal=principal, token=token, expires_at=verified.expires_at)
