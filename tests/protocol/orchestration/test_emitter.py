import json

import pytest

from ideate_agent.core.types import ConversationTurn, Role
from ideate_agent.protocol.orchestration.emitter import NdjsonCallbackSink, NdjsonEmitter
from ideate_agent.protocol.parsers.blocks import SuggestedResponse


def parse_event(b: bytes) -> dict:
    """Helper to decode NDJSON event bytes into a dict"""
    assert b.endswith(b"\n")
    return json.loads(b.decode("utf-8").strip())


def drain(sink: NdjsonCallbackSink) -> list:
    events = []
    while not sink.queue.empty():
        item = sink.queue.get_nowait()
        events.append(None if item is None else parse_event(item))
    return events


def test_envelope_has_type_conversation_data_and_ts():
    ev = parse_event(NdjsonEmitter().emit({"type": "text", "conversation_id": "c1", "data": {"delta": "x"}}))
    assert ev["type"] == "text"
    assert ev["conversation_id"] == "c1"
    assert ev["data"] == {"delta": "x"}
    assert ev["ts"].endswith("+00:00")


@pytest.mark.anyio
async def test_sink_callbacks_become_events():
    sink = NdjsonCallbackSink("c1")
    sink.on_text_chunk("Hello", "msg-1")
    sink.on_tool_use("workspace_list", {})
    sink.on_tool_result("workspace_list", '{"success": true, "data": []}')
    sink.on_blocks("suggested_responses", [SuggestedResponse(label="Yes", value="yes")])
    sink.on_complete(ConversationTurn(role=Role.ASSISTANT, content="Hello", id="msg-1"))

    events = drain(sink)

    assert [e["type"] for e in events] == ["text", "tool_use", "tool_result", "blocks", "complete"]
    assert events[0]["data"] == {"delta": "Hello", "turn_id": "msg-1"}
    assert events[1]["data"] == {"name": "workspace_list", "input": {}}
    assert events[3]["data"] == {"tag": "suggested_responses", "records": [{"label": "Yes", "value": "yes"}]}
    assert events[4]["data"]["turn"]["content"] == "Hello"


@pytest.mark.anyio
async def test_close_emits_done_then_end_marker():
    sink = NdjsonCallbackSink("c1")
    sink.on_error("boom")
    sink.close()

    events = drain(sink)

    assert events[0]["type"] == "error"
    assert events[0]["data"] == {"message": "boom"}
    assert events[1]["type"] == "done"
    assert events[2] is None
