"""
Chat Domain Models for Gemini Chat

Pure Python/Pydantic models for chatrooms, messages and generation jobs.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


PLACEHOLDER_TEXT = "Thinking..."
GENERATION_ERROR_TEXT = (
    "Sorry, I encountered an error while processing your request. Please try again."
)


class Sender(str, Enum):
    """Author of a message."""
    USER = "user"
    AI = "ai"


class MessageStatus(str, Enum):
    """
    Lifecycle of a message.

    User messages are created COMPLETED. AI placeholders start PENDING and
    move once to COMPLETED (generated reply) or FAILED (fixed error text).
    """
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ChatroomCreate(BaseModel):
    """Schema for creating a new chatroom."""
    title: str = Field(..., min_length=1, max_length=255)


class ChatroomSummary(BaseModel):
    """Listing entry for a chatroom; this is what the listing cache stores."""
    id: UUID
    title: str
    message_count: int = 0
    last_message_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatroomListing(BaseModel):
    """Chatroom summaries plus whether they were served from cache."""
    chatrooms: List[ChatroomSummary] = Field(default_factory=list)
    cached: bool = False


class ChatMessage(BaseModel):
    """Complete chat message entity."""
    id: UUID
    chatroom_id: UUID
    content: str
    sender: Sender
    status: MessageStatus
    reply_to_id: Optional[UUID] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SendResult(BaseModel):
    """Outcome of an admitted send: the user message and its pending reply."""
    user_message: ChatMessage
    ai_message: ChatMessage
    current_usage: int
    limit: int


class GenerationJob(BaseModel):
    """
    Work item carried from the request tier to generation workers.

    The placeholder message id is the idempotency key: at most one job per
    placeholder is in flight, and the queue job id is derived from it.
    """
    placeholder_message_id: UUID
    chatroom_id: UUID
    user_id: UUID
    user_text: str

    @property
    def job_id(self) -> str:
        return f"generate-{self.placeholder_message_id}"

    def to_payload(self) -> Dict[str, Any]:
        """Flat JSON-safe record for the queue."""
        return self.model_dump(mode="json")

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "GenerationJob":
        return cls.model_validate(payload)
