"""
Chat Service for Gemini Chat

Business logic layer for chatrooms and the message-send pipeline.

Send ordering (no transaction spans the database and the queue):
    admission check -> user message + placeholder committed together
    -> generation job enqueued -> daily usage incremented
The request never waits for generation; clients re-fetch the chatroom to
see the resolved reply.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gemini_chat.config.settings import Settings, get_settings
from gemini_chat.domain.chat import (
    ChatMessage,
    ChatroomListing,
    ChatroomSummary,
    GenerationJob,
    SendResult,
)
from gemini_chat.domain.subscription import CurrentUser
from gemini_chat.infrastructure.cache.response_cache import ResponseCache, chatrooms_key
from gemini_chat.infrastructure.db.models.chatroom import Chatroom
from gemini_chat.infrastructure.db.models.message import Message
from gemini_chat.infrastructure.db.repositories.chat_repository import ChatRepository
from gemini_chat.infrastructure.exceptions import (
    AdmissionDeniedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from gemini_chat.infrastructure.queue.generation_queue import GenerationQueue
from gemini_chat.infrastructure.services.quota_ledger import QuotaLedger, utc_today


logger = logging.getLogger(__name__)


class ChatService:
    """
    Service for chat business logic.

    Implements:
    - Cached chatroom listing (invalidated on chatroom creation)
    - Quota-gated message sends with asynchronous AI replies
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: ResponseCache,
        queue: GenerationQueue,
        settings: Optional[Settings] = None,
    ):
        self._session = session
        self._repository = ChatRepository(session)
        self._ledger = QuotaLedger(session, settings)
        self._cache = cache
        self._queue = queue
        self._settings = settings or get_settings()

    # =========================================================================
    # Chatroom Operations
    # =========================================================================

    async def create_chatroom(self, user_id: UUID, title: str) -> Chatroom:
        """
        Create a chatroom and drop the owner's cached listing.

        Args:
            user_id: The owner's UUID
            title: Chatroom title

        Returns:
            Created Chatroom
        """
        try:
            chatroom = await self._repository.create_chatroom(user_id, title)
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                "Failed to create chatroom",
                operation="insert",
                table="chatrooms",
                original_error=e,
            )

        await self._cache.invalidate(chatrooms_key(user_id))
        return chatroom

    async def list_chatrooms(self, user_id: UUID) -> ChatroomListing:
        """
        List a user's chatrooms, most recently updated first.

        Served from the listing cache when present; a miss reads the
        database and repopulates the cache before returning.
        """
        key = chatrooms_key(user_id)
        cached = await self._cache.get(key)
        if cached is not None:
            return ChatroomListing(
                chatrooms=[ChatroomSummary.model_validate(item) for item in cached],
                cached=True,
            )

        summaries = await self._repository.list_chatroom_summaries(user_id)
        await self._cache.set_with_ttl(
            key,
            [summary.model_dump(mode="json") for summary in summaries],
            self._settings.chatroom_cache_ttl_seconds,
        )
        return ChatroomListing(chatrooms=summaries, cached=False)

    async def get_chatroom(
        self,
        user_id: UUID,
        chatroom_id: UUID
    ) -> Tuple[Chatroom, List[Message]]:
        """
        Get a chatroom owned by the user together with all its messages.

        Raises:
            NotFoundError: chatroom missing or owned by someone else
        """
        chatroom = await self._require_chatroom(user_id, chatroom_id)
        messages = await self._repository.get_messages(chatroom.id)
        return chatroom, messages

    async def _require_chatroom(self, user_id: UUID, chatroom_id: UUID) -> Chatroom:
        chatroom = await self._repository.get_user_chatroom(chatroom_id, user_id)
        if chatroom is None:
            raise NotFoundError("Chatroom not found", operation="select", table="chatrooms")
        return chatroom

    # =========================================================================
    # Send Pipeline
    # =========================================================================

    async def send_message(
        self,
        user: CurrentUser,
        chatroom_id: UUID,
        text: str,
        today: Optional[date] = None
    ) -> SendResult:
        """
        Admit, persist and enqueue a user message.

        Args:
            user: Caller identity from the auth collaborator
            chatroom_id: Target chatroom
            text: Message content
            today: Accounting day (defaults to the current UTC date)

        Returns:
            SendResult with the user message and its pending AI placeholder

        Raises:
            NotFoundError: chatroom missing or not owned by the user
            ValidationError: blank message text
            AdmissionDeniedError: daily quota exhausted
            PersistenceError: messages could not be stored (nothing enqueued)
            EnqueueError: queue unavailable; the placeholder stays pending
                until the orphan sweep picks it up
        """
        if not text.strip():
            raise ValidationError("Message content cannot be blank")

        today = today or utc_today()
        chatroom = await self._require_chatroom(user.id, chatroom_id)

        decision = await self._ledger.check_and_reserve(
            user.id, user.subscription_tier, today
        )
        if not decision.allowed:
            await self._session.commit()
            raise AdmissionDeniedError(decision.current_usage, decision.limit)

        try:
            user_message = await self._repository.append_user_message(chatroom.id, text)
            placeholder = await self._repository.append_placeholder(
                chatroom.id, reply_to_id=user_message.id
            )
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                "Failed to store message",
                operation="insert",
                table="messages",
                original_error=e,
            )

        job = GenerationJob(
            placeholder_message_id=placeholder.id,
            chatroom_id=chatroom.id,
            user_id=user.id,
            user_text=text,
        )
        await self._queue.enqueue(job)

        current_usage = await self._ledger.increment(user.id, today)
        await self._session.commit()

        logger.info(
            f"Message {user_message.id} accepted in chatroom {chatroom.id}; "
            f"usage {current_usage}/{decision.limit}"
        )
        return SendResult(
            user_message=ChatMessage.model_validate(user_message),
            ai_message=ChatMessage.model_validate(placeholder),
            current_usage=current_usage,
            limit=decision.limit,
        )
