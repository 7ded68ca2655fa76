"""Invite links: signed capability tokens for joining a chat or event.

An invite token binds (resource id, inviter id, invitee id) and is signed
in the invite domain. Nothing is persisted when it is issued; the token
itself is the invitation.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Protocol
from urllib.parse import urlencode

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.services.tokens import InvalidTokenError, TokenCodec, TokenExpiredError

logger = logging.getLogger(__name__)

INVITE_EXPIRED_MESSAGE = "Invite link has expired."
INVITE_INVALID_MESSAGE = "Invalid invite token."
INVITE_NOT_FOR_YOU_MESSAGE = "This invite was not issued to you."


class InviteTokenExpiredError(ValidationError):
    pass


class InviteTokenInvalidError(ValidationError):
    pass


class InviteResource(str, Enum):
    """Resources that can be joined through an invite link.

    The value is the claim name carrying the resource id.
    """

    CHAT = "chatId"
    EVENT = "eventId"

    @property
    def label(self) -> str:
        return "chat" if self is InviteResource.CHAT else "event"

    @property
    def accept_path(self) -> str:
        return f"/api/{self.label}s/invite/accept"


class MembershipProvider(Protocol):
    """Membership operations the invite flow needs from a resource service."""

    async def resource_exists(self, resource_id: int) -> bool: ...

    async def is_member(self, resource_id: int, user_id: int) -> bool: ...

    async def add_member(self, resource_id: int, user_id: int) -> bool:
        """Add the user; return False if they were already a member."""
        ...


class UserDirectory(Protocol):
    async def user_exists(self, user_id: int) -> bool: ...


@dataclass(frozen=True)
class InviteLink:
    resource: InviteResource
    resource_id: int
    inviter_id: int
    invitee_id: int
    token: str
    url: str
    expires_at: int


@dataclass(frozen=True)
class AcceptedInvite:
    resource: InviteResource
    resource_id: int
    inviter_id: int
    joined: bool


class InviteService:
    """Issue and redeem invite links for one resource type."""

    def __init__(
        self,
        resource: InviteResource,
        codec: TokenCodec,
        memberships: MembershipProvider,
        users: UserDirectory,
        base_url: str,
        ttl: timedelta = timedelta(hours=24),
    ):
        self.resource = resource
        self.codec = codec
        self.memberships = memberships
        self.users = users
        self.base_url = base_url.rstrip("/")
        self.ttl = ttl

    def build_url(self, token: str) -> str:
        return f"{self.base_url}{self.resource.accept_path}?{urlencode({'token': token})}"

    async def create_invite(self, resource_id: int, inviter_id: int, invitee_id: int) -> InviteLink:
        """Issue an invite after checking the inviter may hand one out."""
        label = self.resource.label
        if not await self.memberships.resource_exists(resource_id):
            raise NotFoundError(f"{label.capitalize()} not found.")
        if not await self.memberships.is_member(resource_id, inviter_id):
            logger.warning(
                f"User {inviter_id} tried to invite to {label} {resource_id} without membership"
            )
            raise AuthorizationError(f"You are not a member of this {label}.")
        if not await self.users.user_exists(invitee_id):
            raise NotFoundError("User to invite not found.")
        if await self.memberships.is_member(resource_id, invitee_id):
            raise ValidationError(f"User is already a member of this {label}.")

        issued = self.codec.issue(
            {
                self.resource.value: resource_id,
                "inviterId": inviter_id,
                "inviteeId": invitee_id,
            },
            self.ttl,
        )
        logger.info(f"Issued {label} invite for {resource_id}: {inviter_id} -> {invitee_id}")
        return InviteLink(
            resource=self.resource,
            resource_id=resource_id,
            inviter_id=inviter_id,
            invitee_id=invitee_id,
            token=issued.token,
            url=self.build_url(issued.token),
            expires_at=issued.expires_at,
        )

    def read_invite(self, token: str, requesting_user_id: int) -> tuple[int, int]:
        """Verify the token and the invitee; return (resource_id, inviter_id).

        Does not touch storage. The invitee check happens here so that a
        mismatch is reported regardless of whether the resource still exists.
        """
        label = self.resource.label
        try:
            claims = self.codec.verify(token)
        except TokenExpiredError as e:
            logger.info(f"Expired {label} invite presented by user {requesting_user_id}")
            raise InviteTokenExpiredError(INVITE_EXPIRED_MESSAGE) from e
        except InvalidTokenError as e:
            logger.warning(f"Invalid {label} invite presented by user {requesting_user_id}: {e}")
            raise InviteTokenInvalidError(INVITE_INVALID_MESSAGE) from e

        resource_id = claims.get(self.resource.value)
        inviter_id = claims.get("inviterId")
        invitee_id = claims.get("inviteeId")
        if not all(isinstance(v, int) for v in (resource_id, inviter_id, invitee_id)):
            logger.warning(f"{label} invite with missing or malformed claims")
            raise InviteTokenInvalidError(INVITE_INVALID_MESSAGE)

        if invitee_id != requesting_user_id:
            logger.warning(
                f"User {requesting_user_id} presented a {label} invite issued to user {invitee_id}"
            )
            raise AuthorizationError(INVITE_NOT_FOR_YOU_MESSAGE)

        return resource_id, inviter_id  # type: ignore[return-value]

    async def accept_invite(self, token: str, requesting_user_id: int) -> AcceptedInvite:
        """Redeem an invite for the requesting user.

        Replays are harmless: accepting again after joining is a no-op
        reported through ``joined=False``.
        """
        resource_id, inviter_id = self.read_invite(token, requesting_user_id)
        label = self.resource.label

        if not await self.memberships.resource_exists(resource_id):
            logger.warning(f"Invite for deleted {label} {resource_id}")
            raise NotFoundError(f"{label.capitalize()} does not exist.")

        joined = await self.memberships.add_member(resource_id, requesting_user_id)
        if joined:
            logger.info(f"User {requesting_user_id} joined {label} {resource_id} via invite")
        else:
            logger.info(
                f"User {requesting_user_id} already in {label} {resource_id}; invite replay ignored"
            )
        return AcceptedInvite(
            resource=self.resource,
            resource_id=resource_id,
            inviter_id=inviter_id,
            joined=joined,
        )
