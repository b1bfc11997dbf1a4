from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List

from ideate_agent.core.types import (
    ConversationTurn,
    GenerationEvent,
    GenerationRequest,
    ResourceChange,
    ToolDefinition,
)


class GenerationProvider(ABC):
    @abstractmethod
    def stream(self, request: GenerationRequest) -> AsyncIterator[GenerationEvent]:
        """Stream assistant deltas followed by an optional result event"""
        ...

    def list_models(self) -> List[str]:
        """List model selectors this provider understands."""
        return []


class ConversationLog(ABC):
    """Append-only ordered log of turns keyed by conversation id.

    Callers serialize process_message calls per conversation id; the log only
    has to tolerate concurrent appends to different conversations.
    """

    @abstractmethod
    async def append(self, conversation_id: str, turn: ConversationTurn) -> None:
        ...

    @abstractmethod
    async def list(self, conversation_id: str) -> List[ConversationTurn]:
        ...

    @abstractmethod
    async def clear(self, conversation_id: str) -> int:
        """Remove all turns of a conversation and return how many were removed."""
        ...

    @abstractmethod
    async def list_conversations(self) -> List[str]:
        ...


class Tool(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def definition(self) -> ToolDefinition:
        ...

    @abstractmethod
    async def execute(self, tool_input: Dict[str, Any], acting_identity: str) -> Any:
        ...


class ResourceNotifier(ABC):
    @abstractmethod
    async def resource_changed(self, change: ResourceChange) -> None:
        """Broadcast a side effect committed by a tool executor."""
        ...


class CallbackSink:
    """Lifecycle callbacks emitted by the orchestrator. Defaults are no-ops."""

    def on_text_chunk(self, text: str, turn_id: str) -> None:
        pass

    def on_tool_use(self, name: str, tool_input: Dict[str, Any]) -> None:
        pass

    def on_tool_result(self, name: str, output: str) -> None:
        pass

    def on_blocks(self, tag: str, records: List[Any]) -> None:
        pass

    def on_complete(self, turn: ConversationTurn) -> None:
        pass

    def on_error(self, message: str) -> None:
        pass
