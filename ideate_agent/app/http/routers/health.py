import asyncio

from fastapi import APIRouter, Request

from ideate_agent.core.types import GenerationRequest

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    return {"ok": True}


@router.get("/readyz")
async def readyz(request: Request):
    """
    Log: can read history for a dummy conversation.
    Provider: can produce at least one event quickly.
    """
    svc = request.app.state.agent_svc
    # Log check
    try:
        _ = await svc.log.list("_readiness")
    except Exception as e:
        return {"ready": False, "log": False, "provider": None, "error": str(e)}

    # Provider check (timeout for safety)
    agen = svc.provider.stream(GenerationRequest(prompt="ping", messages=[{"role": "user", "content": "ping"}]))
    try:
        _ = await asyncio.wait_for(agen.__anext__(), timeout=1.0)
        return {"ready": True, "log": True, "provider": True}
    except Exception as e:
        return {"ready": False, "log": True, "provider": False, "error": str(e) or e.__class__.__name__}
    finally:
        aclose = getattr(agen, "aclose", None)
        if aclose is not None:
            await aclose()
