"""Event service - events, RSVPs and attendee membership."""

import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.event import AttendeeStatus, Event, EventAttendee

logger = logging.getLogger(__name__)

RSVP_STATUSES = (AttendeeStatus.ATTENDING, AttendeeStatus.NOT_ATTENDING)


class EventService:
    """Service for events. Also the membership provider for event invites.

    A user is a member of an event when they own it or hold an attendee row.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        owner_id: int,
        title: str,
        date: datetime,
        description: str | None = None,
        location: str | None = None,
    ) -> Event:
        event = Event(
            title=title,
            description=description,
            date=date,
            location=location,
            owner_id=owner_id,
        )
        self.db.add(event)
        await self.db.flush()
        await self.db.refresh(event)
        logger.info(f"User {owner_id} created event {event.id}")
        return event

    async def get(self, event_id: int) -> Event | None:
        return await self.db.get(Event, event_id)

    async def get_for_user(self, event_id: int, user_id: int) -> Event:
        event = await self.get(event_id)
        if event is None:
            raise NotFoundError("Event not found.")
        if not await self.is_member(event_id, user_id):
            raise AuthorizationError("You do not have access to this event.")
        return event

    async def delete(self, event_id: int, user_id: int) -> None:
        event = await self.get(event_id)
        if event is None:
            raise NotFoundError("Event not found.")
        if event.owner_id != user_id:
            raise AuthorizationError("Only the event owner can delete this event.")
        await self.db.execute(delete(EventAttendee).where(EventAttendee.event_id == event_id))
        await self.db.delete(event)
        await self.db.flush()
        logger.info(f"Event {event_id} deleted by user {user_id}")

    async def rsvp(self, event_id: int, user_id: int, status: AttendeeStatus) -> str:
        """Record an RSVP. Returns the confirmation message.

        A pending (invited) row is updated once; a settled RSVP cannot be
        changed through this call.
        """
        if status not in RSVP_STATUSES:
            raise ValidationError(
                'Invalid RSVP status. Allowed values are "Attending" and "Not Attending".'
            )
        if not await self.resource_exists(event_id):
            raise NotFoundError("Event not found.")

        attendee = await self._get_attendee(event_id, user_id)
        if attendee is not None:
            if attendee.status != AttendeeStatus.PENDING.value:
                raise ValidationError(f'You have already RSVPed as "{attendee.status}".')
            attendee.status = status.value
            await self.db.flush()
            logger.info(f"User {user_id} updated RSVP for event {event_id} to {status.value}")
            return f'RSVP updated to "{status.value}".'

        self.db.add(EventAttendee(event_id=event_id, user_id=user_id, status=status.value))
        await self.db.flush()
        logger.info(f"User {user_id} RSVPed {status.value} to event {event_id}")
        return f'RSVP as "{status.value}" successful.'

    async def pending_invitations(self, user_id: int) -> list[Event]:
        result = await self.db.execute(
            select(Event)
            .join(EventAttendee, EventAttendee.event_id == Event.id)
            .where(
                EventAttendee.user_id == user_id,
                EventAttendee.status == AttendeeStatus.PENDING.value,
            )
            .order_by(Event.date.asc())
        )
        return list(result.scalars().all())

    async def _get_attendee(self, event_id: int, user_id: int) -> EventAttendee | None:
        result = await self.db.execute(
            select(EventAttendee).where(
                EventAttendee.event_id == event_id, EventAttendee.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    # --- MembershipProvider ---

    async def resource_exists(self, resource_id: int) -> bool:
        result = await self.db.execute(select(Event.id).where(Event.id == resource_id))
        return result.scalar_one_or_none() is not None

    async def is_member(self, resource_id: int, user_id: int) -> bool:
        result = await self.db.execute(select(Event.owner_id).where(Event.id == resource_id))
        owner_id = result.scalar_one_or_none()
        if owner_id is None:
            return False
        if owner_id == user_id:
            return True
        return await self._get_attendee(resource_id, user_id) is not None

    async def add_member(self, resource_id: int, user_id: int) -> bool:
        """Add the invitee as a pending attendee so they can RSVP."""
        if await self.is_member(resource_id, user_id):
            return False
        try:
            async with self.db.begin_nested():
                self.db.add(
                    EventAttendee(
                        event_id=resource_id, user_id=user_id, status=AttendeeStatus.PENDING.value
                    )
                )
        except IntegrityError:
            logger.debug(f"User {user_id} already attends event {resource_id}")
            return False
        return True
