import uuid
from typing import Dict, Iterable, List, Optional

from ideate_agent.core.interfaces import CallbackSink, ConversationLog, GenerationProvider
from ideate_agent.core.logging import logger
from ideate_agent.core.types import (
    ConversationState,
    ConversationTurn,
    EventKind,
    GenerationOptions,
    GenerationRequest,
    ResultStatus,
    Role,
    StreamState,
    ToolCallRecord,
)
from ideate_agent.protocol.orchestration.dispatcher import ToolDispatcher
from ideate_agent.protocol.parsers.blocks import BLOCK_TYPES, BlockExtractor
from ideate_agent.protocol.parsers.directive import (
    TOOL_USE_TAG,
    DirectiveStatus,
    ToolDirective,
    ToolDirectiveParser,
)
from ideate_agent.protocol.parsers.stream_gate import StreamGate
from ideate_agent.protocol.prompts import render_history, tool_result_message

MAX_TOOL_ITERATIONS = 5
MAX_ITERATIONS_NOTICE = (
    "\n\n*I've reached the maximum number of tool iterations ({limit}) for this request. "
    "Let me know if you need me to continue.*"
)
EMPTY_RESPONSE_FALLBACK = "I apologize, but I was unable to generate a response."


class GenerationError(RuntimeError):
    """The generation service failed or reported an error result."""


def new_turn_id() -> str:
    return f"msg-{uuid.uuid4().hex[:12]}"


class _TurnAssembly:
    """Everything released to the caller for one assistant turn."""

    def __init__(self, turn_id: str, callbacks: CallbackSink):
        self.turn_id = turn_id
        self.callbacks = callbacks
        self.parts: List[str] = []
        self.tool_calls: List[ToolCallRecord] = []

    def emit(self, text: str) -> None:
        if text:
            self.parts.append(text)
            self.callbacks.on_text_chunk(text, self.turn_id)

    @property
    def content(self) -> str:
        return "".join(self.parts)


class ConversationOrchestrator:
    """
    Drives one user message through generate -> (tool -> generate)* -> persist.

    idle -> generating -> (tool_detected -> executing -> generating)* -> completed | failed
    """

    def __init__(
        self,
        provider: GenerationProvider,
        dispatcher: ToolDispatcher,
        conversation_log: ConversationLog,
        system_instructions: str = "",
        model: str = "default",
        turn_limit: int = 1,
        max_tool_iterations: int = MAX_TOOL_ITERATIONS,
        history_limit: int = 20,
        block_tags: Optional[Iterable[str]] = None,
        guarded_prefixes: Iterable[str] = (),
        label: str = "Orchestrator",
    ):
        self.provider = provider
        self.dispatcher = dispatcher
        self.log = conversation_log
        self.options = GenerationOptions(
            system_instructions=system_instructions,
            model=model,
            turn_limit=turn_limit,
        )
        self.max_tool_iterations = max_tool_iterations
        self.history_limit = history_limit
        self.block_tags: List[str] = list(BLOCK_TYPES if block_tags is None else block_tags)
        self.gate = StreamGate([*self.block_tags, TOOL_USE_TAG], extra_prefixes=guarded_prefixes)
        self.directives = ToolDirectiveParser()
        self.extractor = BlockExtractor()
        self.label = label

    def _transition(self, conversation_id: str, state: ConversationState, detail: str = "") -> None:
        logger.debug(f"[{self.label}] conversation={conversation_id} -> {state}{' ' + detail if detail else ''}")

    async def process_message(
        self,
        conversation_id: str,
        content: str,
        callbacks: CallbackSink,
        acting_identity: str,
        turn_id: Optional[str] = None,
    ) -> Optional[ConversationTurn]:
        turn = _TurnAssembly(turn_id or new_turn_id(), callbacks)
        state = StreamState()
        self._transition(conversation_id, ConversationState.IDLE)

        try:
            history = await self.log.list(conversation_id)
            await self.log.append(
                conversation_id,
                ConversationTurn(role=Role.USER, content=content, id=new_turn_id()),
            )
            messages = render_history(history, self.history_limit)
            messages.append({"role": str(Role.USER), "content": content})
            logger.info(f"[{self.label}] processing message: conversation={conversation_id}, history={len(history)}")

            while True:
                self._transition(conversation_id, ConversationState.GENERATING, f"iteration={state.iteration_index}")
                text = await self._generate(messages, state, turn)
                parsed = self.directives.parse(text)
                directive = parsed.directive

                if directive is not None and state.iteration_index < self.max_tool_iterations:
                    self._transition(conversation_id, ConversationState.TOOL_DETECTED, directive.name)
                    self._finish_text(directive.text_before, state, turn)
                    await self._run_tool(directive, messages, turn, acting_identity, conversation_id)
                    state.iteration_index += 1
                    continue

                if directive is not None:
                    logger.warning(
                        f"[{self.label}] max tool iterations ({self.max_tool_iterations}) reached, "
                        f"dropping call to {directive.name}"
                    )
                    self._finish_text(directive.text_before, state, turn)
                    turn.emit(MAX_ITERATIONS_NOTICE.format(limit=self.max_tool_iterations))
                elif parsed.status is DirectiveStatus.MALFORMED:
                    logger.warning(f"[{self.label}] discarding malformed directive: {parsed.error}")
                    self._finish_text(text, state, turn)
                else:
                    self._finish_text(text, state, turn)
                break

            assistant_turn = ConversationTurn(
                role=Role.ASSISTANT,
                content=turn.content or EMPTY_RESPONSE_FALLBACK,
                id=turn.turn_id,
                tool_calls=list(turn.tool_calls),
            )
            await self.log.append(conversation_id, assistant_turn)
        except Exception as e:
            self._transition(conversation_id, ConversationState.FAILED)
            logger.exception(f"[{self.label}] error processing message: conversation={conversation_id}")
            callbacks.on_error(str(e) or e.__class__.__name__)
            return None

        self._transition(conversation_id, ConversationState.COMPLETED)
        logger.info(
            f"[{self.label}] response complete: conversation={conversation_id}, "
            f"length={len(assistant_turn.content)}, tool_calls={len(assistant_turn.tool_calls)}"
        )
        callbacks.on_complete(assistant_turn)
        return assistant_turn

    async def _generate(self, messages: List[Dict[str, str]], state: StreamState, turn: _TurnAssembly) -> str:
        state.reset_pass()
        request = GenerationRequest(prompt=messages[-1]["content"], messages=list(messages), options=self.options)
        stream = self.provider.stream(request)
        try:
            async for event in stream:
                if event.kind is EventKind.ASSISTANT_DELTA:
                    if event.text_fragment:
                        state.accumulated_text += event.text_fragment
                        self._flush_safe(state, turn)
                elif event.kind is EventKind.RESULT:
                    if event.status is ResultStatus.ERROR:
                        raise GenerationError(event.error or "An error occurred during processing")
                    # nothing was streamed, fall back to the final text
                    if not state.accumulated_text and event.final_text:
                        state.accumulated_text = event.final_text
                    break
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return state.accumulated_text

    def _flush_safe(self, state: StreamState, turn: _TurnAssembly) -> None:
        limit = self.gate.flush_limit(state.accumulated_text)
        if limit > state.flushed_length:
            turn.emit(state.accumulated_text[state.flushed_length : limit])
            state.flushed_length = limit

    def _finish_text(self, text: str, state: StreamState, turn: _TurnAssembly) -> None:
        """Resolve blocks in the held-back tail of `text` and release the rest."""
        pending = text[state.flushed_length :]
        for tag in self.block_tags:
            result = self.extractor.extract(pending, tag, label=self.label)
            if result.found:
                records = result.records or []
                logger.info(f"[{self.label}] extracted {len(records)} <{tag}> record(s)")
                turn.callbacks.on_blocks(tag, records)
                pending = result.remaining_text
        turn.emit(pending)
        state.flushed_length = len(text)

    async def _run_tool(
        self,
        directive: ToolDirective,
        messages: List[Dict[str, str]],
        turn: _TurnAssembly,
        acting_identity: str,
        conversation_id: str,
    ) -> None:
        turn.callbacks.on_tool_use(directive.name, directive.input)
        self._transition(conversation_id, ConversationState.EXECUTING, directive.name)
        result = await self.dispatcher.dispatch(directive.name, directive.input, acting_identity)
        output = result.to_text()
        turn.tool_calls.append(ToolCallRecord(name=directive.name, input=directive.input, output=output))
        turn.callbacks.on_tool_result(directive.name, output)

        # the model sees its own call followed by the result as the next context
        messages.append({"role": str(Role.ASSISTANT), "content": directive.text_before + directive.raw})
        messages.append(tool_result_message(directive.name, result))
