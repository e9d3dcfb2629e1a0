from typing import Any, Dict, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from ..core.assistant import run_assistant_chat

router = APIRouter(tags=["assistant"])


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    reply: str
    intent: str
    word: Optional[Dict[str, Any]] = None


@router.post("/assistant/chat", response_model=ChatResponse)
async def assistant_chat(payload: ChatRequest):
    result = await run_assistant_chat(payload.message)
    return ChatResponse(**result)
