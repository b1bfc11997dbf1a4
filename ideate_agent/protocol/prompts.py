# ideate_agent/protocol/prompts.py
"""
System instruction and message-list construction.

Provides utilities to build the instructions that tell the model:
1. How to emit a tool call (<tool_use> directive format)
2. What tools are available (names, descriptions, input fields)
3. Which structured blocks the UI understands
and to turn stored turns and tool results into the ordered message list the
generation service receives.
"""
import json
from typing import Dict, Iterable, List

from ideate_agent.core.types import ConversationTurn, ToolDefinition, ToolResult
from ideate_agent.protocol.parsers.blocks import BLOCK_TYPES


def _render_tool_catalog(definitions: Iterable[ToolDefinition]) -> str:
    """
    Render a readable list of tools.

    Format:
      • tool_name: Short description
        - field (required/optional): description
    """
    lines: List[str] = []
    for definition in definitions:
        lines.append(f"• {definition.name}: {definition.description or 'No description provided.'}")
        schema = definition.input_schema
        required = set(schema.required_fields)
        # sorted for stability
        for fname in sorted(schema.field_descriptions):
            req = "required" if fname in required else "optional"
            fdesc = schema.field_descriptions.get(fname, "").strip()
            if fdesc:
                lines.append(f"  - {fname} ({req}): {fdesc}")
            else:
                lines.append(f"  - {fname} ({req})")
    return "\n".join(lines)


def _render_block_instructions(block_tags: Iterable[str]) -> str:
    parts = [BLOCK_TYPES[tag].instructions for tag in block_tags if tag in BLOCK_TYPES]
    return "\n\n".join(parts)


def build_system_instructions(
    definitions: List[ToolDefinition],
    base_instruction: str = "You are a helpful assistant.",
    block_tags: Iterable[str] = (),
) -> str:
    sections = [base_instruction.strip()]

    if definitions:
        catalog = _render_tool_catalog(definitions)
        sections.append(
            f"""You have access to the following tools:

{catalog}

To call a tool, emit EXACTLY this format (one tool call per reply):
<tool_use>{{"name": "tool_name", "input": {{"field1": "value1"}}}}</tool_use>

Stop writing after the closing </tool_use> tag. You will receive the tool result
in the next message; then continue the conversation with a natural response.
Only use tools when they are necessary to answer the user."""
        )

    blocks = _render_block_instructions(block_tags)
    if blocks:
        sections.append(blocks)

    return "\n\n".join(s for s in sections if s)


def render_history(turns: List[ConversationTurn], limit: int) -> List[Dict[str, str]]:
    """Ordered {role, content} messages for the most recent `limit` turns."""
    recent = turns[-limit:] if limit > 0 else []
    return [{"role": str(t.role), "content": t.content} for t in recent]


def tool_result_message(name: str, result: ToolResult) -> Dict[str, str]:
    result_text = json.dumps(result.to_dict(), indent=2, default=str)
    return {"role": "user", "content": f"Tool '{name}' returned:\n{result_text}"}
