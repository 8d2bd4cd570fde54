"""
Test configuration and fixtures for Gemini Chat.

Provides shared fixtures for unit and integration tests: an in-memory
SQLite store, fakeredis-backed cache and queue, and a scripted generator.
"""

from datetime import timedelta
from typing import AsyncGenerator, List, Optional

import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from gemini_chat.config.settings import Settings
from gemini_chat.domain.subscription import SubscriptionTier
from gemini_chat.infrastructure.cache.response_cache import ResponseCache
from gemini_chat.infrastructure.db.database import DatabaseManager
from gemini_chat.infrastructure.db.models import Chatroom, Message, User, utcnow
from gemini_chat.infrastructure.queue.generation_queue import GenerationQueue


# =============================================================================
# Settings
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(
        _env_file=None,
        environment="testing",
        google_api_key="test-key",
        jwt_secret="test-secret",
        basic_daily_limit=5,
        pro_daily_limit=100,
        history_window=10,
        generation_timeout_seconds=30.0,
        generation_max_retries=3,
        generation_retry_intervals=[5, 30, 120],
        sweep_grace_seconds=300,
        chatroom_cache_ttl_seconds=300,
    )


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def db_manager(test_settings) -> AsyncGenerator[DatabaseManager, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    manager = DatabaseManager(test_settings, engine=engine)
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def session_factory(db_manager):
    return db_manager.session_factory


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


async def _create_user(session_factory, mobile_number: str, tier: SubscriptionTier) -> User:
    async with session_factory() as s:
        user = User(mobile_number=mobile_number, subscription_tier=tier.value)
        s.add(user)
        await s.commit()
        await s.refresh(user)
        return user


@pytest.fixture
async def user(session_factory) -> User:
    """A basic-tier user."""
    return await _create_user(session_factory, "+15550000001", SubscriptionTier.BASIC)


@pytest.fixture
async def pro_user(session_factory) -> User:
    return await _create_user(session_factory, "+15550000002", SubscriptionTier.PRO)


@pytest.fixture
async def chatroom(session_factory, user) -> Chatroom:
    """A chatroom whose updated_at lies an hour in the past."""
    async with session_factory() as s:
        room = Chatroom(
            user_id=user.id,
            title="General",
            created_at=utcnow() - timedelta(hours=1),
            updated_at=utcnow() - timedelta(hours=1),
        )
        s.add(room)
        await s.commit()
        await s.refresh(room)
        return room


async def add_message(
    session_factory,
    chatroom_id,
    content: str,
    sender: str = "user",
    status: str = "completed",
    reply_to_id=None,
    created_at=None,
) -> Message:
    """Insert a message row directly, with an explicit timestamp if given."""
    async with session_factory() as s:
        message = Message(
            chatroom_id=chatroom_id,
            content=content,
            sender=sender,
            status=status,
            reply_to_id=reply_to_id,
            created_at=created_at or utcnow(),
        )
        s.add(message)
        await s.commit()
        await s.refresh(message)
        return message


@pytest.fixture
def make_message(session_factory):
    """Factory fixture around :func:`add_message`."""
    async def _make(chatroom_id, content: str, **kwargs) -> Message:
        return await add_message(session_factory, chatroom_id, content, **kwargs)
    return _make


# =============================================================================
# Redis Fixtures
# =============================================================================

@pytest.fixture
def redis_server():
    """One fake Redis server per test; instances otherwise share state."""
    return fakeredis.FakeServer()


@pytest.fixture
async def cache_client(redis_server):
    client = fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def cache(cache_client, test_settings) -> ResponseCache:
    return ResponseCache(cache_client, default_ttl=test_settings.chatroom_cache_ttl_seconds)


@pytest.fixture
def queue_connection(redis_server):
    return fakeredis.FakeRedis(server=redis_server)


@pytest.fixture
def generation_queue(queue_connection, test_settings) -> GenerationQueue:
    return GenerationQueue(queue_connection, settings=test_settings)


# =============================================================================
# Generator Fixtures
# =============================================================================

class FakeGenerator:
    """Scripted stand-in for GeminiService that records every prompt."""

    def __init__(self, reply: str = "Hi there!", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def generate_text(self, prompt: str, timeout_seconds: float) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app(session_factory, cache, generation_queue, test_settings, monkeypatch):
    """FastAPI app wired to the test store, cache and queue."""
    from gemini_chat.api import dependencies
    from gemini_chat.infrastructure.db.database import get_session
    from gemini_chat.main import app as fastapi_app

    async def override_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    monkeypatch.setattr(dependencies, "get_settings", lambda: test_settings)
    fastapi_app.dependency_overrides[get_session] = override_session
    fastapi_app.dependency_overrides[dependencies.get_response_cache] = lambda: cache
    fastapi_app.dependency_overrides[dependencies.get_generation_queue] = lambda: generation_queue
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Get async test client sharing the test event loop."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
