"""Event and attendee models."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel


class AttendeeStatus(str, Enum):
    PENDING = "Pending"
    ATTENDING = "Attending"
    NOT_ATTENDING = "Not Attending"


class Event(BaseModel):
    """A scheduled event owned by one user."""

    __tablename__ = "events"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    attendees: Mapped[list["EventAttendee"]] = relationship(
        "EventAttendee",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Event {self.id} {self.title!r}>"


class EventAttendee(BaseModel):
    """A user's RSVP row for an event."""

    __tablename__ = "event_attendees"

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_attendees_event_user"),
    )

    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Stored as the display value ("Pending", "Attending", "Not Attending")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AttendeeStatus.PENDING.value
    )

    event: Mapped["Event"] = relationship("Event", back_populates="attendees")
