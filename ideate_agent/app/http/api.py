from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI

from ideate_agent.app.http.routers.chat import router as chat_router
from ideate_agent.app.http.routers.conversations import router as conversations_router
from ideate_agent.app.http.routers.health import router as health_router
from ideate_agent.app.http.routers.tools import router as tools_router
from ideate_agent.protocol.service.agent_service import AgentService


def create_app(settings: Optional[Dict[str, Any]] = None, service: Optional[AgentService] = None) -> FastAPI:
    """Create and configure the FastAPI application with DI"""
    if service is None:
        from ideate_agent.core.factory import ServiceFactory

        service = ServiceFactory(settings).get_agent_service()

    app = FastAPI(title="Ideate Agent")
    # store service on app state
    app.state.agent_svc = service

    # Create a new APIRouter for versioning
    v1_router = APIRouter(prefix="/api/v1")

    # include routers
    v1_router.include_router(chat_router)
    v1_router.include_router(conversations_router)
    v1_router.include_router(health_router)
    v1_router.include_router(tools_router)

    app.include_router(v1_router)
    return app
