import asyncio
import datetime
import json
from typing import Any, Dict, List, Optional

from ideate_agent.core.interfaces import CallbackSink
from ideate_agent.core.types import ConversationTurn, StreamEvent
from ideate_agent.protocol.parsers.blocks import dump_records


class NdjsonEmitter:
    """Emitter producing NDJSON bytes for unified event schema"""

    def emit(self, event: Dict[str, Any]) -> bytes:
        # Build envelope with UTC timestamp
        out = {
            "type": event.get("type", ""),
            "conversation_id": event.get("conversation_id", ""),
            "data": event.get("data", {}),
            "ts": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        return (json.dumps(out, default=str) + "\n").encode("utf-8")


class NdjsonCallbackSink(CallbackSink):
    """Turns orchestrator callbacks into NDJSON lines on a queue; None marks the end."""

    def __init__(self, conversation_id: str, emitter: Optional[NdjsonEmitter] = None):
        self.conversation_id = conversation_id
        self.emitter = emitter or NdjsonEmitter()
        self.queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue()

    def _put(self, event_type: StreamEvent, data: Dict[str, Any]) -> None:
        self.queue.put_nowait(
            self.emitter.emit({"type": str(event_type), "conversation_id": self.conversation_id, "data": data})
        )

    def on_text_chunk(self, text: str, turn_id: str) -> None:
        self._put(StreamEvent.TEXT, {"delta": text, "turn_id": turn_id})

    def on_tool_use(self, name: str, tool_input: Dict[str, Any]) -> None:
        self._put(StreamEvent.TOOL_USE, {"name": name, "input": tool_input})

    def on_tool_result(self, name: str, output: str) -> None:
        self._put(StreamEvent.TOOL_RESULT, {"name": name, "output": output})

    def on_blocks(self, tag: str, records: List[Any]) -> None:
        self._put(StreamEvent.BLOCKS, {"tag": tag, "records": dump_records(records)})

    def on_complete(self, turn: ConversationTurn) -> None:
        self._put(StreamEvent.COMPLETE, {"turn": turn.to_dict()})

    def on_error(self, message: str) -> None:
        self._put(StreamEvent.ERROR, {"message": message})

    def close(self) -> None:
        self._put(StreamEvent.DONE, {})
        self.queue.put_nowait(None)
