import asyncio
from typing import AsyncGenerator, List, Sequence

from ideate_agent.core.interfaces import GenerationProvider
from ideate_agent.core.types import GenerationEvent, GenerationRequest


def chunk_text(text: str, size: int) -> List[str]:
    if size <= 0:
        return [text] if text else []
    return [text[i : i + size] for i in range(0, len(text), size)]


class EchoProvider(GenerationProvider):
    def __init__(self, delay: float = 0.0, chunk_size: int = 8):
        self.delay = delay
        self.chunk_size = chunk_size

    async def stream(self, request: GenerationRequest) -> AsyncGenerator[GenerationEvent, None]:
        """Simulate streaming by echoing the latest prompt back in small deltas"""
        for piece in chunk_text(f"You said: {request.prompt}", self.chunk_size):
            if self.delay:
                await asyncio.sleep(self.delay)
            yield GenerationEvent.delta(piece)
        yield GenerationEvent.success()

    def list_models(self) -> List[str]:
        return ["echo"]


class ScriptedProvider(GenerationProvider):
    """
    Replays canned responses, one per stream() call; the last one repeats.

    A response is either a string (split into deltas of `chunk_size`), a list of
    explicit delta strings, or a GenerationEvent/exception to inject mid-stream.
    """

    def __init__(self, responses: Sequence, chunk_size: int = 0, delay: float = 0.0):
        if not responses:
            raise ValueError("ScriptedProvider needs at least one response")
        self.responses = list(responses)
        self.chunk_size = chunk_size
        self.delay = delay
        self.requests: List[GenerationRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def _next_script(self) -> list:
        idx = min(len(self.requests) - 1, len(self.responses) - 1)
        script = self.responses[idx]
        if isinstance(script, str):
            return chunk_text(script, self.chunk_size)
        return list(script)

    async def stream(self, request: GenerationRequest) -> AsyncGenerator[GenerationEvent, None]:
        self.requests.append(request)
        for item in self._next_script():
            if self.delay:
                await asyncio.sleep(self.delay)
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, GenerationEvent):
                yield item
                if item.status is not None:
                    return
                continue
            yield GenerationEvent.delta(item)
        yield GenerationEvent.success()

    def list_models(self) -> List[str]:
        return ["scripted"]
