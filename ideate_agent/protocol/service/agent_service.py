import asyncio
import contextlib
from typing import Any, AsyncGenerator, Dict, Iterable, List, Optional

from ideate_agent.core.interfaces import ConversationLog, GenerationProvider, Tool
from ideate_agent.core.logging import logger
from ideate_agent.protocol.orchestration.dispatcher import ToolDispatcher
from ideate_agent.protocol.orchestration.emitter import NdjsonCallbackSink
from ideate_agent.protocol.orchestration.orchestrator import MAX_TOOL_ITERATIONS, ConversationOrchestrator
from ideate_agent.protocol.parsers.blocks import BLOCK_TYPES
from ideate_agent.protocol.prompts import build_system_instructions


class AgentService:
    def __init__(
        self,
        provider: GenerationProvider,
        conversation_log: ConversationLog,
        tools: Dict[str, Tool],
        system_prompt: str = "",
        acting_identity: str = "local-user",
        model: str = "default",
        turn_limit: int = 1,
        max_tool_iterations: int = MAX_TOOL_ITERATIONS,
        history_limit: int = 20,
        tool_timeout: Optional[float] = None,
        block_tags: Optional[Iterable[str]] = None,
        guarded_prefixes: Iterable[str] = (),
    ):
        """Wire provider, log and tools into one orchestrator"""
        self.provider = provider
        self.log = conversation_log
        self.acting_identity = acting_identity
        self.dispatcher = ToolDispatcher(tools, timeout=tool_timeout)
        tags = [t for t in (BLOCK_TYPES if block_tags is None else block_tags) if t in BLOCK_TYPES]
        self.system_instructions = build_system_instructions(
            self.dispatcher.definitions(),
            base_instruction=system_prompt or "You are a helpful assistant.",
            block_tags=tags,
        )
        self.orchestrator = ConversationOrchestrator(
            provider=provider,
            dispatcher=self.dispatcher,
            conversation_log=conversation_log,
            system_instructions=self.system_instructions,
            model=model,
            turn_limit=turn_limit,
            max_tool_iterations=max_tool_iterations,
            history_limit=history_limit,
            block_tags=tags,
            guarded_prefixes=guarded_prefixes,
        )

    async def stream(
        self, conversation_id: str, content: str, acting_identity: Optional[str] = None
    ) -> AsyncGenerator[bytes, None]:
        """Run one message through the orchestrator, yielding NDJSON event lines"""
        sink = NdjsonCallbackSink(conversation_id)

        async def _run() -> None:
            try:
                await self.orchestrator.process_message(
                    conversation_id,
                    content,
                    sink,
                    acting_identity or self.acting_identity,
                )
            finally:
                sink.close()

        task = asyncio.create_task(_run())
        try:
            while True:
                chunk = await sink.queue.get()
                if chunk is None:
                    break
                yield chunk
        finally:
            if not task.done():
                logger.info(f"Stream abandoned, cancelling: conversation={conversation_id}")
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    # --- Conversation management ---

    async def get_history(self, conversation_id: str) -> List[Dict[str, Any]]:
        turns = await self.log.list(conversation_id)
        return [t.to_dict() for t in turns]

    async def clear_history(self, conversation_id: str) -> int:
        return await self.log.clear(conversation_id)

    async def list_conversations(self) -> List[str]:
        return await self.log.list_conversations()

    # --- Tools ---

    def list_tools(self) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in self.dispatcher.definitions()]
