from typing import Any, Dict, List

from fastapi import APIRouter, Request

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("", response_model=List[Dict[str, Any]])
def list_tools(request: Request):
    """List the tools the model may call."""
    agent_svc = request.app.state.agent_svc
    return agent_svc.list_tools()
