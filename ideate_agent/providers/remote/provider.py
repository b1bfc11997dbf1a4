"""
Generation provider backed by a remote HTTP endpoint.

The endpoint receives the GenerationRequest as JSON and answers with an NDJSON
stream of events:
    {"kind": "assistant_delta", "textFragment": "..."}
    {"kind": "result", "status": "success" | "error", "finalText": "...", "error": "..."}

No retries here: a failed generation surfaces to the orchestrator, and a host
wrapper decides whether to re-run the whole call.
"""
import json
import logging
from typing import AsyncGenerator, Dict, List, Optional

import httpx

from ideate_agent.core.interfaces import GenerationProvider
from ideate_agent.core.types import GenerationEvent, GenerationRequest

logger = logging.getLogger(__name__)


class RemoteProvider(GenerationProvider):
    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 120.0,
        models: Optional[List[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not url:
            raise ValueError("Remote provider URL cannot be empty")
        self.url = url
        self.api_key = api_key
        self.models = models or []
        self.transport = transport
        self.timeout = httpx.Timeout(connect=connect_timeout, read=read_timeout, write=10.0, pool=5.0)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/x-ndjson", "Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def stream(self, request: GenerationRequest) -> AsyncGenerator[GenerationEvent, None]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            async with client.stream("POST", self.url, json=request.to_dict(), headers=self._headers()) as response:
                # Log response metadata only (no prompt content or key)
                logger.info(f"Remote generation response: status={response.status_code}")
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        payload = json.loads(line)
                    except json.JSONDecodeError:
                        logger.warning(f"Remote generation: skipping non-JSON line: {line[:80]!r}")
                        continue
                    event = GenerationEvent.from_dict(payload)
                    yield event
                    if event.status is not None:
                        return

    def list_models(self) -> List[str]:
        return list(self.models)
