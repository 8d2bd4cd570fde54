"""
Chat Repository for Gemini Chat

Conversation store: chatrooms and their ordered message history.
Repositories flush; callers decide when to commit.
"""

from datetime import datetime
from typing import Collection, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, or_, select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from gemini_chat.domain.chat import (
    PLACEHOLDER_TEXT,
    ChatroomSummary,
    MessageStatus,
    Sender,
)
from gemini_chat.infrastructure.db.models.base import utcnow
from gemini_chat.infrastructure.db.models.chatroom import Chatroom
from gemini_chat.infrastructure.db.models.message import Message


class ChatRepository:
    """
    Repository for chat-related database operations.

    Manages both Chatroom and Message entities.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    # =========================================================================
    # Chatroom Operations
    # =========================================================================

    async def create_chatroom(self, user_id: UUID, title: str) -> Chatroom:
        """
        Create a new chatroom.

        Args:
            user_id: Owning user's UUID
            title: Chatroom title

        Returns:
            Created Chatroom instance
        """
        chatroom = Chatroom(user_id=user_id, title=title)
        self._session.add(chatroom)
        await self._session.flush()
        await self._session.refresh(chatroom)
        return chatroom

    async def get_chatroom(self, chatroom_id: UUID) -> Optional[Chatroom]:
        return await self._session.get(Chatroom, chatroom_id)

    async def get_user_chatroom(
        self,
        chatroom_id: UUID,
        user_id: UUID
    ) -> Optional[Chatroom]:
        """
        Get a chatroom only if it belongs to the given user.

        Args:
            chatroom_id: The chatroom's UUID
            user_id: The requesting user's UUID

        Returns:
            Chatroom or None
        """
        stmt = (
            select(Chatroom)
            .where(Chatroom.id == chatroom_id)
            .where(Chatroom.user_id == user_id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_chatroom_summaries(self, user_id: UUID) -> List[ChatroomSummary]:
        """
        List a user's chatrooms with message counts, most recently updated first.

        Args:
            user_id: The user's UUID

        Returns:
            List of ChatroomSummary
        """
        stmt = (
            select(
                Chatroom.id,
                Chatroom.title,
                Chatroom.created_at,
                Chatroom.updated_at,
                func.count(Message.id).label("message_count"),
                func.max(Message.created_at).label("last_message_at"),
            )
            .select_from(Chatroom)
            .outerjoin(Message, Message.chatroom_id == Chatroom.id)
            .where(Chatroom.user_id == user_id)
            .group_by(
                Chatroom.id,
                Chatroom.title,
                Chatroom.created_at,
                Chatroom.updated_at,
            )
            .order_by(Chatroom.updated_at.desc())
        )
        result = await self._session.execute(stmt)
        return [
            ChatroomSummary(
                id=row.id,
                title=row.title,
                message_count=int(row.message_count or 0),
                last_message_at=row.last_message_at,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )
            for row in result.all()
        ]

    async def touch_chatroom(self, chatroom_id: UUID) -> None:
        """Set a chatroom's updated_at to now."""
        stmt = (
            update(Chatroom)
            .where(Chatroom.id == chatroom_id)
            .values(updated_at=utcnow())
        )
        await self._session.execute(stmt)
        await self._session.flush()

    # =========================================================================
    # Message Operations
    # =========================================================================

    async def get_message(self, message_id: UUID) -> Optional[Message]:
        return await self._session.get(Message, message_id)

    async def get_messages(self, chatroom_id: UUID) -> List[Message]:
        """
        Get all messages in a chatroom, oldest first.

        Args:
            chatroom_id: The chatroom's UUID

        Returns:
            List of Message instances
        """
        stmt = (
            select(Message)
            .where(Message.chatroom_id == chatroom_id)
            .order_by(Message.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def append_user_message(self, chatroom_id: UUID, content: str) -> Message:
        """
        Add a user-authored message to a chatroom.

        Args:
            chatroom_id: The chatroom's UUID
            content: Message text

        Returns:
            Created Message instance
        """
        message = Message(
            chatroom_id=chatroom_id,
            content=content,
            sender=Sender.USER.value,
            status=MessageStatus.COMPLETED.value,
        )
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def append_placeholder(
        self,
        chatroom_id: UUID,
        reply_to_id: UUID
    ) -> Message:
        """
        Add a pending AI message answering ``reply_to_id``.

        Args:
            chatroom_id: The chatroom's UUID
            reply_to_id: The user message this placeholder answers

        Returns:
            Created placeholder Message
        """
        message = Message(
            chatroom_id=chatroom_id,
            content=PLACEHOLDER_TEXT,
            sender=Sender.AI.value,
            status=MessageStatus.PENDING.value,
            reply_to_id=reply_to_id,
        )
        self._session.add(message)
        await self._session.flush()
        await self._session.refresh(message)
        return message

    async def get_recent_history(
        self,
        chatroom_id: UUID,
        exclude_ids: Collection[UUID],
        limit: int = 10
    ) -> List[Message]:
        """
        Get the most recent completed messages of a chatroom, oldest first.

        Pending placeholders and failed replies never enter the context.

        Args:
            chatroom_id: The chatroom's UUID
            exclude_ids: Messages to leave out (the placeholder being
                generated and the user message it answers)
            limit: Maximum number of messages (the history window)

        Returns:
            Up to ``limit`` messages in chronological order
        """
        stmt = (
            select(Message)
            .where(Message.chatroom_id == chatroom_id)
            .where(Message.status == MessageStatus.COMPLETED.value)
            .order_by(Message.created_at.desc())
            .limit(limit)
        )
        if exclude_ids:
            stmt = stmt.where(Message.id.not_in(list(exclude_ids)))
        result = await self._session.execute(stmt)
        messages = list(result.scalars().all())
        messages.reverse()
        return messages

    async def complete_message(
        self,
        message_id: UUID,
        content: str,
        status: MessageStatus = MessageStatus.COMPLETED
    ) -> bool:
        """
        Overwrite an AI message's content with its terminal result.

        This is the only mutation path for AI message content. Repeated
        calls overwrite (last write wins).

        Args:
            message_id: The placeholder's UUID
            content: Generated reply or the fixed error text
            status: COMPLETED or FAILED

        Returns:
            True if a message was updated
        """
        stmt = (
            update(Message)
            .where(Message.id == message_id)
            .where(Message.sender == Sender.AI.value)
            .values(content=content, status=status.value, completed_at=utcnow())
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount > 0

    async def find_stale_placeholders(
        self,
        older_than: datetime,
        limit: int = 100,
        after: Optional[Tuple[datetime, UUID]] = None
    ) -> List[Message]:
        """
        Find AI placeholders still pending after a cutoff.

        Args:
            older_than: Only placeholders created before this instant
            limit: Maximum rows to return
            after: Keyset cursor, the (created_at, id) of the last row of
                the previous page

        Returns:
            Oldest pending placeholders first
        """
        stmt = (
            select(Message)
            .where(Message.sender == Sender.AI.value)
            .where(Message.status == MessageStatus.PENDING.value)
            .where(Message.created_at < older_than)
        )
        if after is not None:
            created_at, message_id = after
            stmt = stmt.where(
                or_(
                    Message.created_at > created_at,
                    and_(Message.created_at == created_at, Message.id > message_id),
                )
            )
        stmt = stmt.order_by(Message.created_at.asc(), Message.id.asc()).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
