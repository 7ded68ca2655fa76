"""Pydantic schemas for event endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.event import AttendeeStatus, Event


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    date: datetime
    location: str | None = Field(None, max_length=255)


class EventResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str
    description: str | None
    date: datetime
    location: str | None
    owner_id: int = Field(alias="ownerId")

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            description=event.description,
            date=event.date,
            location=event.location,
            owner_id=event.owner_id,
        )


class EventCreatedResponse(BaseModel):
    message: str
    event: EventResponse


class RsvpRequest(BaseModel):
    status: AttendeeStatus


class InvitationsResponse(BaseModel):
    message: str
    invitations: list[EventResponse]
