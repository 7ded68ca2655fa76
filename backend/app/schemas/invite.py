"""Pydantic schemas shared by chat and event invite endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class InviteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    invitee_user_id: int = Field(..., alias="inviteeUserId", gt=0)


class InviteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    invite_link: str = Field(alias="inviteLink")
    expires_at: int = Field(alias="expiresAt", description="Unix timestamp")


class InviteAcceptedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    resource_id: int = Field(alias="resourceId")
