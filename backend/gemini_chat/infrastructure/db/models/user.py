"""
User SQLModel for Gemini Chat

Owned by the authentication collaborator. The generation pipeline only
reads ``id`` and ``subscription_tier``.
"""

from typing import Optional

from sqlalchemy import Column, String
from sqlmodel import Field

from gemini_chat.infrastructure.db.models.base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, table=True):
    """User database table model."""

    __tablename__ = "users"

    mobile_number: str = Field(
        ...,
        max_length=15,
        sa_column=Column(String(15), unique=True, nullable=False),
        description="Login identity"
    )

    password_hash: Optional[str] = Field(
        default=None,
        max_length=255,
        sa_column=Column(String(255)),
    )

    subscription_tier: str = Field(
        default="basic",
        max_length=20,
        sa_column=Column(String(20), nullable=False, server_default="basic"),
        description="Subscription tier: 'basic' or 'pro'"
    )

    stripe_customer_id: Optional[str] = Field(
        default=None,
        max_length=255,
        sa_column=Column(String(255)),
        description="Billing reference"
    )
