"""Pydantic schemas for chat endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.chat import Chat


class ChatCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_name: str | None = Field(None, alias="chatName", max_length=100)
    user_ids: list[int] = Field(default_factory=list, alias="userIds")


class ChatCreatedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    chat_id: int = Field(alias="chatId")


class ChatSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: int = Field(alias="chatId")
    chat_name: str | None = Field(alias="chatName")
    is_group_chat: bool = Field(alias="isGroupChat")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_chat(cls, chat: Chat) -> "ChatSummary":
        return cls(
            chat_id=chat.id,
            chat_name=chat.name,
            is_group_chat=chat.is_group_chat,
            created_at=chat.created_at,
        )


class ChatListResponse(BaseModel):
    chats: list[ChatSummary]
