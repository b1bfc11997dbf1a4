import json

from ideate_agent.core.types import ConversationTurn, InputSchema, Role, ToolDefinition, ToolResult
from ideate_agent.protocol.prompts import build_system_instructions, render_history, tool_result_message

DEFINITION = ToolDefinition(
    name="document_get",
    description="Read a document.",
    input_schema=InputSchema(
        required_fields=["document_id"],
        field_descriptions={"document_id": "ID of the document.", "verbose": ""},
    ),
)


def test_catalog_lists_tools_and_fields():
    text = build_system_instructions([DEFINITION], base_instruction="Be brief.")
    assert text.startswith("Be brief.")
    assert "• document_get: Read a document." in text
    assert "  - document_id (required): ID of the document." in text
    assert "  - verbose (optional)" in text
    assert '<tool_use>{"name": "tool_name", "input": {"field1": "value1"}}</tool_use>' in text


def test_no_tools_means_no_tool_format():
    text = build_system_instructions([], base_instruction="Be brief.")
    assert "<tool_use>" not in text


def test_block_instructions_only_for_enabled_tags():
    text = build_system_instructions([], block_tags=["suggested_responses", "unknown"])
    assert "<suggested_responses>" in text
    assert "<open_questions>" not in text


def test_render_history_keeps_last_turns_in_order():
    turns = [ConversationTurn(role=Role.USER if i % 2 == 0 else Role.ASSISTANT, content=str(i)) for i in range(5)]
    assert render_history(turns, 2) == [
        {"role": "assistant", "content": "3"},
        {"role": "user", "content": "4"},
    ]
    assert render_history(turns, 0) == []


def test_tool_result_message_carries_json():
    message = tool_result_message("document_get", ToolResult.fail("Document not found: d1"))
    assert message["role"] == "user"
    header, body = message["content"].split("\n", 1)
    assert header == "Tool 'document_get' returned:"
    assert json.loads(body) == {"success": False, "error": "Document not found: d1"}
