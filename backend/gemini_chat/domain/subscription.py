"""
Subscription Domain Models

Tier enum, the authenticated caller as seen by the pipeline, and the
quota types derived from tier configuration.
"""

from datetime import date
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class SubscriptionTier(str, Enum):
    """Subscription tier levels."""
    BASIC = "basic"
    PRO = "pro"


class CurrentUser(BaseModel):
    """Identity supplied by the auth collaborator; trusted as-is."""
    id: UUID
    subscription_tier: SubscriptionTier = SubscriptionTier.BASIC


class QuotaDecision(BaseModel):
    """Result of an admission check."""
    allowed: bool
    current_usage: int
    limit: int


class UsageSummary(BaseModel):
    """Today's usage for a user."""
    date: date
    today: int
    daily_limit: int
    remaining: int = Field(ge=0)


def get_daily_limit(tier: SubscriptionTier, settings) -> int:
    """Map a tier to its configured daily message limit."""
    if tier == SubscriptionTier.PRO:
        return settings.pro_daily_limit
    return settings.basic_daily_limit
