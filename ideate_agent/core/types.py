from __future__ import annotations

import datetime
import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Dict, List, Optional


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class EventKind(StrEnum):
    ASSISTANT_DELTA = "assistant_delta"
    RESULT = "result"


class ResultStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


class StreamEvent(StrEnum):
    TEXT = "text"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"
    BLOCKS = "blocks"
    COMPLETE = "complete"
    ERROR = "error"
    DONE = "done"


class ConversationState(StrEnum):
    IDLE = "idle"
    GENERATING = "generating"
    TOOL_DETECTED = "tool_detected"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


def utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass(frozen=True)
class ToolCallRecord:
    name: str
    input: Dict[str, Any] = field(default_factory=dict)
    output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "input": self.input}
        if self.output is not None:
            out["output"] = self.output
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCallRecord":
        return cls(name=data["name"], input=data.get("input") or {}, output=data.get("output"))


@dataclass(frozen=True)
class ConversationTurn:
    """One user message or one assistant response. Immutable once appended."""

    role: Role
    content: str
    id: str = ""
    timestamp: str = field(default_factory=utc_now)
    tool_calls: List[ToolCallRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": str(self.role),
            "content": self.content,
            "timestamp": self.timestamp,
            "toolCalls": [tc.to_dict() for tc in self.tool_calls],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationTurn":
        return cls(
            role=Role(data["role"]),
            content=data.get("content") or "",
            id=data.get("id") or "",
            timestamp=data.get("timestamp") or utc_now(),
            tool_calls=[ToolCallRecord.from_dict(tc) for tc in data.get("toolCalls") or []],
        )


@dataclass
class StreamState:
    """Transient per-request state; discarded when process_message returns."""

    accumulated_text: str = ""
    iteration_index: int = 0
    flushed_length: int = 0

    def reset_pass(self) -> None:
        self.accumulated_text = ""
        self.flushed_length = 0


@dataclass(frozen=True)
class InputSchema:
    required_fields: List[str] = field(default_factory=list)
    field_descriptions: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: InputSchema = field(default_factory=InputSchema)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "requiredFields": list(self.input_schema.required_fields),
                "fieldDescriptions": dict(self.input_schema.field_descriptions),
            },
        }


@dataclass(frozen=True)
class ToolResult:
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "error": self.error}

    def to_text(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass(frozen=True)
class GenerationOptions:
    system_instructions: str = ""
    model: str = "default"
    turn_limit: int = 1


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    messages: List[Dict[str, str]] = field(default_factory=list)
    options: GenerationOptions = field(default_factory=GenerationOptions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "messages": self.messages,
            "options": {
                "systemInstructions": self.options.system_instructions,
                "model": self.options.model,
                "turnLimit": self.options.turn_limit,
            },
        }


@dataclass(frozen=True)
class GenerationEvent:
    kind: EventKind
    text_fragment: str = ""
    status: Optional[ResultStatus] = None
    final_text: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def delta(cls, text: str) -> "GenerationEvent":
        return cls(kind=EventKind.ASSISTANT_DELTA, text_fragment=text)

    @classmethod
    def success(cls, final_text: Optional[str] = None) -> "GenerationEvent":
        return cls(kind=EventKind.RESULT, status=ResultStatus.SUCCESS, final_text=final_text)

    @classmethod
    def failure(cls, error: str) -> "GenerationEvent":
        return cls(kind=EventKind.RESULT, status=ResultStatus.ERROR, error=error)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationEvent":
        kind = EventKind(data.get("kind", ""))
        if kind is EventKind.ASSISTANT_DELTA:
            return cls.delta(data.get("textFragment") or "")
        status = ResultStatus(data.get("status", ResultStatus.SUCCESS))
        return cls(
            kind=kind,
            status=status,
            final_text=data.get("finalText"),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class ResourceChange:
    kind: str  # "workspace" | "document"
    action: str  # "created" | "updated" | "deleted"
    resource_id: str
    acting_identity: str
    resource: Dict[str, Any] = field(default_factory=dict)
