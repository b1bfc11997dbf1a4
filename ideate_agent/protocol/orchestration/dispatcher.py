import asyncio
from typing import Any, Dict, List, Optional

from ideate_agent.core.interfaces import Tool
from ideate_agent.core.logging import logger
from ideate_agent.core.types import ToolDefinition, ToolResult


def normalize_result(raw: Any) -> ToolResult:
    if isinstance(raw, ToolResult):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("success"), bool):
        if raw["success"]:
            return ToolResult.ok(raw.get("data"))
        return ToolResult.fail(str(raw.get("error") or "Tool reported failure"))
    return ToolResult.ok(raw)


class ToolDispatcher:
    """Name -> executor lookup with uniform error translation. Never raises."""

    def __init__(self, tools: Dict[str, Tool], timeout: Optional[float] = None):
        self.tools = tools
        self.timeout = timeout

    def definitions(self) -> List[ToolDefinition]:
        return [tool.definition for tool in self.tools.values()]

    async def dispatch(self, name: str, tool_input: Dict[str, Any], acting_identity: str) -> ToolResult:
        tool = self.tools.get(name)
        if tool is None:
            logger.warning(f"Dispatcher: unknown tool requested: {name}")
            return ToolResult.fail(f"Unknown tool: {name}")
        if not isinstance(tool_input, dict):
            return ToolResult.fail(f"Input for {name} must be an object")

        try:
            if self.timeout:
                raw = await asyncio.wait_for(tool.execute(tool_input, acting_identity), timeout=self.timeout)
            else:
                raw = await tool.execute(tool_input, acting_identity)
        except asyncio.TimeoutError:
            logger.error(f"Dispatcher: tool {name} timed out after {self.timeout}s")
            return ToolResult.fail(f"Tool {name} timed out after {self.timeout}s")
        except Exception as e:
            logger.exception(f"Dispatcher: error executing tool {name}")
            return ToolResult.fail(str(e) or e.__class__.__name__)

        result = normalize_result(raw)
        logger.info(f"Dispatcher: tool {name} finished, success={result.success}")
        return result
