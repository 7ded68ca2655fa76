"""Chat service - chat lifecycle and membership."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.chat import Chat, ChatMember
from app.models.user import User

logger = logging.getLogger(__name__)


class ChatService:
    """Service for chats. Also the membership provider for chat invites."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, creator_id: int, name: str | None, user_ids: list[int]) -> Chat:
        """Create a chat with the creator and the listed users as members."""
        member_ids = list(dict.fromkeys([creator_id, *user_ids]))
        if len(member_ids) > 1:
            result = await self.db.execute(select(User.id).where(User.id.in_(member_ids)))
            found = set(result.scalars().all())
            missing = [uid for uid in member_ids if uid not in found]
            if missing:
                raise ValidationError(f"Unknown user ids: {', '.join(map(str, missing))}")

        chat = Chat(name=name, is_group_chat=len(member_ids) > 2, created_by=creator_id)
        self.db.add(chat)
        await self.db.flush()
        for user_id in member_ids:
            self.db.add(ChatMember(chat_id=chat.id, user_id=user_id))
        await self.db.flush()
        await self.db.refresh(chat)

        logger.info(f"User {creator_id} created chat {chat.id} with {len(member_ids)} members")
        return chat

    async def get(self, chat_id: int) -> Chat | None:
        return await self.db.get(Chat, chat_id)

    async def list_for_user(self, user_id: int) -> list[Chat]:
        result = await self.db.execute(
            select(Chat)
            .join(ChatMember, ChatMember.chat_id == Chat.id)
            .where(ChatMember.user_id == user_id)
            .order_by(Chat.created_at.desc(), Chat.id.desc())
        )
        return list(result.scalars().all())

    async def leave(self, chat_id: int, user_id: int) -> None:
        if not await self.is_member(chat_id, user_id):
            raise NotFoundError("You are not a member of this chat.")
        await self.db.execute(
            delete(ChatMember).where(ChatMember.chat_id == chat_id, ChatMember.user_id == user_id)
        )
        logger.info(f"User {user_id} left chat {chat_id}")

    async def delete(self, chat_id: int, user_id: int) -> None:
        chat = await self.get(chat_id)
        if chat is None:
            raise NotFoundError("Chat not found.")
        if chat.created_by != user_id:
            raise AuthorizationError("Only the chat creator can delete this chat.")
        await self.db.execute(delete(ChatMember).where(ChatMember.chat_id == chat_id))
        await self.db.delete(chat)
        await self.db.flush()
        logger.info(f"Chat {chat_id} deleted by user {user_id}")

    # --- MembershipProvider ---

    async def resource_exists(self, resource_id: int) -> bool:
        result = await self.db.execute(select(Chat.id).where(Chat.id == resource_id))
        return result.scalar_one_or_none() is not None

    async def is_member(self, resource_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(ChatMember.id).where(
                ChatMember.chat_id == resource_id, ChatMember.user_id == user_id
            )
        )
        return result.scalar_one_or_none() is not None

    async def add_member(self, resource_id: int, user_id: int) -> bool:
        if await self.is_member(resource_id, user_id):
            return False
        try:
            async with self.db.begin_nested():
                self.db.add(ChatMember(chat_id=resource_id, user_id=user_id))
        except IntegrityError:
            # Lost a race with a concurrent join
            logger.debug(f"User {user_id} already joined chat {resource_id}")
            return False
        return True
