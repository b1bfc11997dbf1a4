from typing import List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

router = APIRouter(prefix="/conversations", tags=["conversations"])


class ToolCall(BaseModel):
    name: str
    input: dict = Field(default_factory=dict)
    output: Optional[str] = None


class Turn(BaseModel):
    id: str
    role: str
    content: str
    timestamp: str
    toolCalls: List[ToolCall] = Field(default_factory=list)


class ClearResult(BaseModel):
    conversation_id: str
    deleted_count: int
    detail: Optional[str] = None


@router.get("", response_model=List[str])
async def list_conversations(request: Request):
    """List conversation ids, most recently active first."""
    agent_svc = request.app.state.agent_svc
    return await agent_svc.list_conversations()


@router.get("/{conversation_id}/turns", response_model=List[Turn])
async def get_turns(conversation_id: str, request: Request):
    """Get the stored turns of a conversation."""
    agent_svc = request.app.state.agent_svc
    turns = await agent_svc.get_history(conversation_id)
    if not turns:
        raise HTTPException(status_code=404, detail="Conversation not found or has no turns")
    return turns


@router.delete("/{conversation_id}", response_model=ClearResult)
async def clear_conversation(conversation_id: str, request: Request):
    """Delete every turn of a conversation."""
    agent_svc = request.app.state.agent_svc
    count = await agent_svc.clear_history(conversation_id)
    if not count:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return {"conversation_id": conversation_id, "deleted_count": count}
