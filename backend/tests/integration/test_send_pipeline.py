"""
Integration tests for ChatService: admission, persistence, enqueue and
usage accounting working together over SQLite and fakeredis.
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from gemini_chat.domain.chat import GENERATION_ERROR_TEXT, GenerationJob, MessageStatus
from gemini_chat.domain.subscription import CurrentUser, SubscriptionTier
from gemini_chat.infrastructure.db.chat_service import ChatService
from gemini_chat.infrastructure.db.models import Message
from gemini_chat.infrastructure.db.repositories.usage_repository import UsageRepository
from gemini_chat.infrastructure.exceptions import (
    AdmissionDeniedError,
    EnqueueError,
    GenerationTimeoutError,
    NotFoundError,
    ValidationError,
)
from gemini_chat.infrastructure.services.generation_worker import GenerationWorker


DAY = date(2026, 3, 1)


@pytest.fixture
def basic_user(user) -> CurrentUser:
    return CurrentUser(id=user.id, subscription_tier=SubscriptionTier.BASIC)


@pytest.fixture
def service(session, cache, generation_queue, test_settings) -> ChatService:
    return ChatService(session, cache, generation_queue, test_settings)


async def count_messages(session_factory, chatroom_id) -> int:
    async with session_factory() as s:
        result = await s.execute(
            select(func.count(Message.id)).where(Message.chatroom_id == chatroom_id)
        )
        return result.scalar_one()


async def usage(session_factory, user_id) -> int:
    async with session_factory() as s:
        return await UsageRepository(s).get_count(user_id, DAY)


class TestSendMessage:

    async def test_accepted_send_persists_enqueues_and_counts(
        self, service, basic_user, chatroom, generation_queue, session_factory
    ):
        result = await service.send_message(basic_user, chatroom.id, "Hello", today=DAY)

        assert result.user_message.content == "Hello"
        assert result.user_message.status == MessageStatus.COMPLETED
        assert result.ai_message.status == MessageStatus.PENDING
        assert result.ai_message.reply_to_id == result.user_message.id
        assert result.current_usage == 1
        assert result.limit == 5

        rq_job = generation_queue.queue.fetch_job(f"generate-{result.ai_message.id}")
        assert rq_job is not None
        assert rq_job.args[0]["user_text"] == "Hello"
        assert await usage(session_factory, basic_user.id) == 1

    async def test_basic_user_denied_after_five_sends(
        self, service, basic_user, chatroom, session_factory
    ):
        for _ in range(5):
            await service.send_message(basic_user, chatroom.id, "hi", today=DAY)

        with pytest.raises(AdmissionDeniedError) as exc_info:
            await service.send_message(basic_user, chatroom.id, "one too many", today=DAY)

        assert exc_info.value.current_usage == 5
        assert exc_info.value.limit == 5
        assert await usage(session_factory, basic_user.id) == 5
        assert await count_messages(session_factory, chatroom.id) == 10

    async def test_enqueue_failure_keeps_messages_but_not_usage(
        self, session, cache, test_settings, basic_user, chatroom, session_factory
    ):
        queue = MagicMock()
        queue.enqueue = AsyncMock(side_effect=EnqueueError("redis down", job_id="x"))
        service = ChatService(session, cache, queue, test_settings)

        with pytest.raises(EnqueueError):
            await service.send_message(basic_user, chatroom.id, "Hello", today=DAY)

        assert await usage(session_factory, basic_user.id) == 0
        async with session_factory() as s:
            placeholders = (await s.execute(
                select(Message).where(Message.sender == "ai")
            )).scalars().all()
        assert len(placeholders) == 1
        assert placeholders[0].status == MessageStatus.PENDING.value

    async def test_foreign_chatroom_is_not_found(self, service, chatroom, pro_user):
        intruder = CurrentUser(id=pro_user.id, subscription_tier=SubscriptionTier.PRO)
        with pytest.raises(NotFoundError):
            await service.send_message(intruder, chatroom.id, "Hello", today=DAY)

    async def test_missing_chatroom_is_not_found(self, service, basic_user):
        with pytest.raises(NotFoundError):
            await service.send_message(basic_user, uuid4(), "Hello", today=DAY)


class TestEndToEnd:

    async def test_reply_resolves_after_worker_runs(
        self, service, basic_user, chatroom, session_factory, fake_generator, test_settings
    ):
        result = await service.send_message(basic_user, chatroom.id, "Hello", today=DAY)
        job = GenerationJob(
            placeholder_message_id=result.ai_message.id,
            chatroom_id=chatroom.id,
            user_id=basic_user.id,
            user_text="Hello",
        )

        await GenerationWorker(session_factory, fake_generator, test_settings).process_job(job)

        _, messages = await service.get_chatroom(basic_user.id, chatroom.id)
        replies = [m for m in messages if m.id == result.ai_message.id]
        assert replies[0].content == "Hi there!"
        assert replies[0].status == MessageStatus.COMPLETED.value

    async def test_timed_out_reply_still_counts_against_quota(
        self, service, basic_user, chatroom, session_factory, fake_generator, test_settings
    ):
        result = await service.send_message(basic_user, chatroom.id, "Hello", today=DAY)
        job = GenerationJob(
            placeholder_message_id=result.ai_message.id,
            chatroom_id=chatroom.id,
            user_id=basic_user.id,
            user_text="Hello",
        )
        fake_generator.error = GenerationTimeoutError(30.0)

        with pytest.raises(GenerationTimeoutError):
            await GenerationWorker(
                session_factory, fake_generator, test_settings
            ).process_job(job, final_attempt=True)

        async with session_factory() as s:
            stored = await s.get(Message, result.ai_message.id)
        assert stored.content == GENERATION_ERROR_TEXT
        assert await usage(session_factory, basic_user.id) == 1


class TestChatroomListing:

    async def test_listing_cached_until_new_chatroom(self, service, user):
        await service.create_chatroom(user.id, "First")

        first = await service.list_chatrooms(user.id)
        second = await service.list_chatrooms(user.id)
        await service.create_chatroom(user.id, "Second")
        third = await service.list_chatrooms(user.id)

        assert first.cached is False
        assert second.cached is True
        assert second.chatrooms == first.chatrooms
        assert [c.title for c in second.chatrooms] == ["First"]
        assert third.cached is False
        assert [c.title for c in third.chatrooms] == ["Second", "First"]

    async def test_get_chatroom_of_other_user_is_not_found(self, service, chatroom, pro_user):
        with pytest.raises(NotFoundError):
            await service.get_chatroom(pro_user.id, chatroom.id)


class TestSendValidation:

    async def test_blank_message_is_rejected_before_admission(
        self, service, basic_user, chatroom, session_factory
    ):
        with pytest.raises(ValidationError):
            await service.send_message(basic_user, chatroom.id, "   ", today=DAY)

        assert await count_messages(session_factory, chatroom.id) == 0
        assert await usage(session_factory, basic_user.id) == 0
