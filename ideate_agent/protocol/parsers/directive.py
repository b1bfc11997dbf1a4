import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, Optional

from ideate_agent.core.logging import logger
from ideate_agent.protocol.parsers.regions import scan_tag_region

TOOL_USE_TAG = "tool_use"


class DirectiveStatus(StrEnum):
    NOT_FOUND = "not_found"
    FOUND = "found"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ToolDirective:
    name: str
    input: Dict[str, Any] = field(default_factory=dict)
    text_before: str = ""
    raw: str = ""  # the full <tool_use>...</tool_use> region as emitted


@dataclass(frozen=True)
class DirectiveParse:
    status: DirectiveStatus
    directive: Optional[ToolDirective] = None
    error: Optional[str] = None


class ToolDirectiveParser:
    """
    Finds the single tool invocation of a generation turn:
        <tool_use>{"name": "...", "input": {...}}</tool_use>

    The first opening tag wins. Its JSON body is decoded in place and must be
    followed by the closing tag, so a closing tag quoted inside a string value
    does not cut the directive short.
    Anything after that region is not part of the directive.
    """

    def __init__(self, tag: str = TOOL_USE_TAG):
        self.tag = tag
        self.opening = f"<{tag}>"

    def parse(self, text: str) -> DirectiveParse:
        region = scan_tag_region(text, self.tag)
        if region is None:
            return DirectiveParse(DirectiveStatus.NOT_FOUND)

        if region.end == -1:
            logger.warning("Directive parser: unterminated tool_use region")
            return DirectiveParse(DirectiveStatus.MALFORMED, error="unterminated tool_use region")

        start, end = region.start, region.end
        if text.find(self.opening, end) != -1:
            logger.warning("Directive parser: more than one tool_use region, honoring the first")

        if region.decoded:
            obj = region.payload
        else:
            inner = region.inner.strip()
            try:
                # only reached for bodies that do not decode; loads gives the error message
                obj = json.loads(inner)
            except json.JSONDecodeError as e:
                logger.warning(f"Directive parser: JSON parse error: {e}, raw={inner[:100]!r}")
                return DirectiveParse(DirectiveStatus.MALFORMED, error=f"json_parse_error: {e}")

        if not isinstance(obj, dict):
            return DirectiveParse(DirectiveStatus.MALFORMED, error="directive payload is not an object")

        name = obj.get("name")
        if not isinstance(name, str) or not name.strip():
            return DirectiveParse(DirectiveStatus.MALFORMED, error="directive has no tool name")

        tool_input = obj.get("input", obj.get("arguments", {}))
        if tool_input is None:
            tool_input = {}
        if not isinstance(tool_input, dict):
            return DirectiveParse(DirectiveStatus.MALFORMED, error="directive input is not an object")

        directive = ToolDirective(
            name=name.strip(),
            input=tool_input,
            text_before=text[:start],
            raw=text[start:end],
        )
        logger.info(f"Directive parser: tool call parsed: name={directive.name}, input={tool_input}")
        return DirectiveParse(DirectiveStatus.FOUND, directive=directive)
