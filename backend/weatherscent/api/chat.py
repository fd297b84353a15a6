"""
Perfume consultant chat endpoints.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from weatherscent.api.deps import get_llm_service, get_storage, llm_http_error
from weatherscent.schemas import CamelModel, ChatMessage, ChatMessageCreate, ChatReply
from weatherscent.services import LLMServiceError, OpenAIService
from weatherscent.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


class ChatRequest(CamelModel):
    """Request payload for a chat turn."""

    message: str = Field(..., min_length=1, max_length=4000)
    user_id: Optional[int] = Field(None, description="Stores both sides of the turn when set.")
    context: Optional[Dict[str, Any]] = Field(
        None, description="Optional structured context (weather, preferences)."
    )


@router.post("", response_model=ChatReply, response_model_exclude_none=True)
async def chat(
    payload: ChatRequest,
    storage: Storage = Depends(get_storage),
    llm: OpenAIService = Depends(get_llm_service),
):
    """
    Reply to a chat message; recommendations appear only when the user asked for them.

    With a userId the turn is stored as two messages: the user's, then the reply.
    """
    try:
        reply = await llm.chat_reply(payload.message, payload.context)
    except LLMServiceError as e:
        logger.error(f"Chat reply failed: {e}")
        raise llm_http_error(e, "Failed to get chat response")

    if payload.user_id:
        await storage.save_chat_message(
            ChatMessageCreate(user_id=payload.user_id, message=payload.message, is_user=True)
        )
        await storage.save_chat_message(
            ChatMessageCreate(user_id=payload.user_id, message=reply.message, is_user=False)
        )

    return reply


@router.get("/{user_id}/history", response_model=List[ChatMessage])
async def chat_history(user_id: int, storage: Storage = Depends(get_storage)):
    """All stored messages for a user, oldest first."""
    return await storage.get_chat_history(user_id)
