"""
Quota Ledger

Admission control for message sends, backed by daily UsageRecord rows.

The check and the increment are separate steps: ``check_and_reserve`` runs
before anything is written, ``increment`` runs last, after the messages are
committed and the generation job is acknowledged by the queue. Concurrent
sends from one user can therefore both pass the check; the limit is soft by
at most the number of in-flight sends.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from gemini_chat.config.settings import Settings, get_settings
from gemini_chat.domain.subscription import (
    QuotaDecision,
    SubscriptionTier,
    UsageSummary,
    get_daily_limit,
)
from gemini_chat.infrastructure.db.repositories.usage_repository import UsageRepository


logger = logging.getLogger(__name__)


def utc_today() -> date:
    """Calendar day used for quota accounting."""
    return datetime.now(timezone.utc).date()


class QuotaLedger:
    """Per-user per-day message counter with tier-based limits."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self._usage_repo = UsageRepository(session)
        self._settings = settings or get_settings()

    def limit_for(self, tier: SubscriptionTier) -> int:
        return get_daily_limit(SubscriptionTier(tier), self._settings)

    async def check_and_reserve(
        self,
        user_id: UUID,
        tier: SubscriptionTier,
        today: Optional[date] = None
    ) -> QuotaDecision:
        """
        Decide whether the user may send another message today.

        Lazily creates today's record at zero. Never changes the count.

        Args:
            user_id: The sender's UUID
            tier: The sender's subscription tier
            today: Accounting day (defaults to the current UTC date)

        Returns:
            QuotaDecision with the current usage and the tier limit
        """
        today = today or utc_today()
        limit = self.limit_for(tier)

        await self._usage_repo.ensure_record(user_id, today)
        current_usage = await self._usage_repo.get_count(user_id, today)

        allowed = current_usage < limit
        if not allowed:
            logger.info(
                f"Admission denied for user {user_id}: {current_usage}/{limit} on {today}"
            )
        return QuotaDecision(allowed=allowed, current_usage=current_usage, limit=limit)

    async def increment(self, user_id: UUID, today: Optional[date] = None) -> int:
        """
        Charge one message to the user's daily counter.

        Returns:
            The count after the increment
        """
        today = today or utc_today()
        count = await self._usage_repo.increment(user_id, today)
        logger.debug(f"Usage for user {user_id} on {today} is now {count}")
        return count

    async def usage_summary(
        self,
        user_id: UUID,
        tier: SubscriptionTier,
        today: Optional[date] = None
    ) -> UsageSummary:
        """Today's count, limit and remaining sends."""
        today = today or utc_today()
        limit = self.limit_for(tier)
        count = await self._usage_repo.get_count(user_id, today)
        return UsageSummary(
            date=today,
            today=count,
            daily_limit=limit,
            remaining=max(0, limit - count),
        )
