from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ideate_agent.core.logging import logger

router = APIRouter(prefix="/chat", tags=["chat"])


class StreamRequest(BaseModel):
    conversation_id: str = Field(..., min_length=1, description="The conversation this message belongs to.")
    prompt: str = Field(..., description="The user's message.")
    acting_identity: Optional[str] = Field(None, description="User on whose behalf tools run.")


@router.post("/stream")
async def stream(request: Request, body: StreamRequest):
    logger.info(f"/chat/stream called: conversation_id={body.conversation_id}")
    agent_svc = request.app.state.agent_svc

    async def event_generator():
        agen = agent_svc.stream(
            conversation_id=body.conversation_id,
            content=body.prompt,
            acting_identity=body.acting_identity,
        )
        try:
            async for chunk in agen:
                # Check disconnect BEFORE yielding
                if await request.is_disconnected():
                    logger.info(f"Client disconnected: conversation_id={body.conversation_id}")
                    break
                yield chunk
        except Exception as e:
            logger.exception(f"Exception in /chat/stream: {e}")
            raise
        finally:
            await agen.aclose()

    return StreamingResponse(event_generator(), media_type="application/x-ndjson")
