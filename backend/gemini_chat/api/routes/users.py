"""
User Routes for Gemini Chat

Read-only view of the caller's identity and daily usage.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from gemini_chat.api.dependencies import get_current_user, get_quota_ledger
from gemini_chat.domain.subscription import CurrentUser, SubscriptionTier, UsageSummary
from gemini_chat.infrastructure.services.quota_ledger import QuotaLedger


router = APIRouter()


class UserMeResponse(BaseModel):
    """Response model for the current user."""
    id: UUID
    subscription_tier: SubscriptionTier
    usage: UsageSummary


@router.get("/user/me", response_model=UserMeResponse)
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    ledger: QuotaLedger = Depends(get_quota_ledger)
):
    """Get the current user's tier and today's message usage."""
    usage = await ledger.usage_summary(user.id, user.subscription_tier)
    return UserMeResponse(
        id=user.id,
        subscription_tier=user.subscription_tier,
        usage=usage,
    )
