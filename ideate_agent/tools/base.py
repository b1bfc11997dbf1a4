import inspect
import re
from abc import abstractmethod
from typing import Any, Dict, List

from ideate_agent.core.interfaces import Tool
from ideate_agent.core.types import InputSchema, ToolDefinition

# =============================
# Tool Authoring Guidelines
# =============================
#
# To create a new tool:
# 1. Subclass BaseTool, set `tool_name`, and implement the async run() method.
#    The first parameter after self is always the acting identity; the rest are
#    the fields of the directive's input object.
# 2. Use a Google-style docstring for run() with an Args: section, e.g.:
#
#     async def run(self, acting_identity: str, name: str, description: str = "") -> dict:
#         """
#         Create a workspace owned by the acting user.
#         Args:
#             name: Display name of the workspace.
#             description: Optional longer description.
#         """
#
# 3. The ToolDefinition is generated from the run() signature and docstring:
#    parameters without defaults become required fields.
# 4. The class docstring (first paragraph) is used as the tool description.

ACTING_IDENTITY_PARAM = "acting_identity"


class BaseTool(Tool):
    tool_name: str = ""

    @staticmethod
    def _extract_param_descriptions(docstring: str) -> Dict[str, str]:
        """Map parameter names to descriptions from a Google-style Args: section."""
        if not docstring:
            return {}
        param_desc = {}
        args_section = re.search(r"Args?:\s*(.*?)(^\s*\w+:\s*$|\Z)", docstring, re.DOTALL | re.MULTILINE)
        if args_section:
            for line in args_section.group(1).splitlines():
                match = re.match(r"\s*(\w+)\s*:\s*(.*)", line)
                if match:
                    name, desc = match.groups()
                    param_desc[name] = desc.strip()
        return param_desc

    def _input_params(self) -> List[inspect.Parameter]:
        sig = inspect.signature(self.run)
        return [
            p
            for p in sig.parameters.values()
            if p.name != ACTING_IDENTITY_PARAM and p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        ]

    @property
    def name(self) -> str:
        return self.tool_name or self.__class__.__name__

    @property
    def description(self) -> str:
        doc = inspect.getdoc(self) or ""
        return doc.split("\n\n")[0].strip()

    @property
    def definition(self) -> ToolDefinition:
        param_docs = self._extract_param_descriptions(inspect.getdoc(self.run) or "")
        params = self._input_params()
        return ToolDefinition(
            name=self.name,
            description=self.description,
            input_schema=InputSchema(
                required_fields=[p.name for p in params if p.default is inspect.Parameter.empty],
                field_descriptions={p.name: param_docs.get(p.name, "") for p in params},
            ),
        )

    async def execute(self, tool_input: Dict[str, Any], acting_identity: str) -> Any:
        definition = self.definition
        missing = [f for f in definition.input_schema.required_fields if f not in tool_input]
        if missing:
            raise ValueError(f"Missing required field(s) for {self.name}: {', '.join(missing)}")
        known = {p.name for p in self._input_params()}
        unknown = sorted(set(tool_input) - known)
        if unknown:
            raise ValueError(f"Unexpected field(s) for {self.name}: {', '.join(unknown)}")
        return await self.run(acting_identity, **tool_input)

    @abstractmethod
    async def run(self, acting_identity: str, **kwargs) -> Any:
        """Execute tool with given arguments (the definition will match the signature)."""
        raise NotImplementedError()
