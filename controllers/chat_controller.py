# controllers/chat_controller.py
"""
Chat endpoint: one natural language command per request.
"""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from services.schema_orchestrator import get_orchestrator

logger = logging.getLogger(__name__)

chat_router = APIRouter(tags=["Chat"])


# =====================================================
# Request schema
# =====================================================
class ChatRequest(BaseModel):
    message: str = ""
    session_id: str = ""  # Client-provided session ID for conversation tracking
    new_conversation: bool = False  # Reset session for new UI conversations


@chat_router.post("/")
async def chat(payload: ChatRequest):
    """
    Apply a chat message to the session schema.

    Returns success, answer, intent, changed, schema and context.
    """
    message = (payload.message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    logger.debug("[NLP] session=%s message=%s", payload.session_id, message)
    return get_orchestrator().process(
        message,
        session_id=payload.session_id or None,
        new_conversation=payload.new_conversation,
    )


@chat_router.post("/reset")
async def reset(payload: ChatRequest):
    return get_orchestrator().reset_session(payload.session_id or None)
