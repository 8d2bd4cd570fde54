"""
Usage Repository

Data access for per-user daily message counters. Every mutation is a
single-row statement so concurrent senders never lose an increment.
"""

import logging
from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from gemini_chat.infrastructure.db.models.base import utcnow
from gemini_chat.infrastructure.db.models.usage_record import UsageRecord


logger = logging.getLogger(__name__)


class UsageRepository:
    """Repository for UsageRecord rows keyed by (user, day)."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _insert(self):
        dialect = self._session.bind.dialect.name
        if dialect == "sqlite":
            return sqlite_insert(UsageRecord)
        return pg_insert(UsageRecord)

    async def ensure_record(self, user_id: UUID, day: date) -> None:
        """Insert today's counter at zero unless it already exists."""
        stmt = (
            self._insert()
            .values(
                id=uuid4(),
                user_id=user_id,
                usage_date=day,
                message_count=0,
                created_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["user_id", "usage_date"])
        )
        await self._session.execute(stmt)

    async def get_count(self, user_id: UUID, day: date) -> int:
        """Return the day's count, 0 when no record exists yet."""
        stmt = (
            select(UsageRecord.message_count)
            .where(UsageRecord.user_id == user_id)
            .where(UsageRecord.usage_date == day)
        )
        result = await self._session.execute(stmt)
        count = result.scalar_one_or_none()
        return count or 0

    async def increment(self, user_id: UUID, day: date) -> int:
        """
        Add one to the day's counter, creating the record if needed.

        Returns:
            The count after the increment
        """
        await self.ensure_record(user_id, day)
        stmt = (
            update(UsageRecord)
            .where(UsageRecord.user_id == user_id)
            .where(UsageRecord.usage_date == day)
            .values(message_count=UsageRecord.message_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        return await self.get_count(user_id, day)

    async def increment_if_under(self, user_id: UUID, day: date, limit: int) -> bool:
        """
        Conditionally add one while the count is below ``limit``.

        Returns:
            True if the counter was incremented
        """
        await self.ensure_record(user_id, day)
        stmt = (
            update(UsageRecord)
            .where(UsageRecord.user_id == user_id)
            .where(UsageRecord.usage_date == day)
            .where(UsageRecord.message_count < limit)
            .values(message_count=UsageRecord.message_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1
