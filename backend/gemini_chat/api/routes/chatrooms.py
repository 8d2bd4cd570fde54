"""
Chatroom Routes for Gemini Chat

API endpoints for chatrooms and asynchronous message sends.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from gemini_chat.api.dependencies import get_chat_service, get_current_user
from gemini_chat.domain.chat import ChatMessage, ChatroomCreate, ChatroomSummary
from gemini_chat.domain.subscription import CurrentUser
from gemini_chat.infrastructure.db.chat_service import ChatService


router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class ChatroomResponse(BaseModel):
    """Response model for a chatroom."""
    id: UUID
    title: str
    created_at: datetime
    updated_at: datetime


class ChatroomListResponse(BaseModel):
    """Response model for the chatroom listing."""
    chatrooms: List[ChatroomSummary]
    total: int
    cached: bool


class ChatroomDetailResponse(ChatroomResponse):
    """A chatroom with its messages, oldest first."""
    messages: List[ChatMessage]


class SendMessageRequest(BaseModel):
    """Request to post a user message."""
    content: str = Field(..., min_length=1, max_length=10000)


class UsageInfo(BaseModel):
    current: int
    limit: int
    remaining: int


class SendMessageResponse(BaseModel):
    """Accepted send; the AI reply resolves asynchronously."""
    user_message: ChatMessage
    ai_message: ChatMessage
    status: str = "processing"
    usage: UsageInfo
    detail: Optional[str] = None


# ============================================================================
# Chatroom Endpoints
# ============================================================================

@router.post("/chatroom", response_model=ChatroomResponse, status_code=201)
async def create_chatroom(
    request: ChatroomCreate,
    user: CurrentUser = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Create a new chatroom for the current user."""
    chatroom = await chat_service.create_chatroom(user.id, request.title)
    return ChatroomResponse(
        id=chatroom.id,
        title=chatroom.title,
        created_at=chatroom.created_at,
        updated_at=chatroom.updated_at,
    )


@router.get("/chatroom", response_model=ChatroomListResponse)
async def list_chatrooms(
    user: CurrentUser = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    List the current user's chatrooms.

    Returns chatrooms ordered by most recently updated. `cached` tells
    whether the listing came from the short-lived listing cache.
    """
    listing = await chat_service.list_chatrooms(user.id)
    return ChatroomListResponse(
        chatrooms=listing.chatrooms,
        total=len(listing.chatrooms),
        cached=listing.cached,
    )


@router.get("/chatroom/{chatroom_id}", response_model=ChatroomDetailResponse)
async def get_chatroom(
    chatroom_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Get a chatroom and all of its messages."""
    chatroom, messages = await chat_service.get_chatroom(user.id, chatroom_id)
    return ChatroomDetailResponse(
        id=chatroom.id,
        title=chatroom.title,
        created_at=chatroom.created_at,
        updated_at=chatroom.updated_at,
        messages=[ChatMessage.model_validate(m) for m in messages],
    )


@router.post(
    "/chatroom/{chatroom_id}/message",
    response_model=SendMessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def send_message(
    chatroom_id: UUID,
    request: SendMessageRequest,
    user: CurrentUser = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """
    Post a message and queue the AI reply.

    Returns as soon as the job is queued; re-fetch the chatroom to see the
    placeholder resolve.
    """
    result = await chat_service.send_message(user, chatroom_id, request.content)
    return SendMessageResponse(
        user_message=result.user_message,
        ai_message=result.ai_message,
        usage=UsageInfo(
            current=result.current_usage,
            limit=result.limit,
            remaining=max(result.limit - result.current_usage, 0),
        ),
        detail="AI response is being generated",
    )
