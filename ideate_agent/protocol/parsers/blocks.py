"""
Structured blocks embedded in assistant text.

A block is a `<tag>json</tag>` island consumed by the UI layer
(question pickers, quick replies, document edits, idea drafts). Each known tag maps to a
pydantic record model; adding a block type means registering a new entry in
BLOCK_TYPES, the extraction algorithm stays the same.
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ideate_agent.core.logging import logger
from ideate_agent.protocol.parsers.regions import scan_tag_region


class QuestionOption(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    label: str
    description: Optional[str] = None


class OpenQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    question: str
    context: Optional[str] = None
    selection_type: Literal["single", "multiple"] = Field("single", alias="selectionType")
    options: List[QuestionOption] = Field(default_factory=list)
    allow_custom: bool = Field(True, alias="allowCustom")

    @field_validator("allow_custom", mode="before")
    @classmethod
    def _custom_unless_false(cls, value: Any) -> bool:
        # users can always type their own answer unless the model opts out explicitly
        return value is not False


class SuggestedResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    label: str
    value: str

    @model_validator(mode="before")
    @classmethod
    def _value_from_message(cls, data: Any) -> Any:
        if isinstance(data, dict) and "value" not in data and "message" in data:
            data = dict(data)
            data["value"] = data["message"]
        return data


class DocumentEdit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    action: Literal["replace", "insert", "delete"]
    start: int
    start_text: Optional[str] = Field(None, alias="startText")
    end_text: Optional[str] = Field(None, alias="endText")
    after_text: Optional[str] = Field(None, alias="afterText")
    text: Optional[str] = None

    @model_validator(mode="after")
    def _anchors_for_action(self) -> "DocumentEdit":
        required = {
            "replace": ("start_text", "end_text", "text"),
            "insert": ("after_text", "text"),
            "delete": ("start_text", "end_text"),
        }[self.action]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.action} edit is missing {', '.join(missing)}")
        return self


class IdeaUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


@dataclass(frozen=True)
class BlockType:
    tag: str
    record_model: Type[BaseModel]
    instructions: str
    many: bool = True  # payload is a list of records; otherwise one object


BLOCK_TYPES: Dict[str, BlockType] = {
    "open_questions": BlockType(
        tag="open_questions",
        record_model=OpenQuestion,
        instructions=(
            "To ask the user clarifying questions, end your reply with\n"
            '<open_questions>[{"id": "q1", "question": "...", "selectionType": "single", '
            '"options": [{"id": "a", "label": "..."}], "allowCustom": true}]</open_questions>'
        ),
    ),
    "suggested_responses": BlockType(
        tag="suggested_responses",
        record_model=SuggestedResponse,
        instructions=(
            "To offer quick replies, end your reply with\n"
            '<suggested_responses>[{"label": "...", "value": "..."}]</suggested_responses>'
        ),
    ),
    "document_edits": BlockType(
        tag="document_edits",
        record_model=DocumentEdit,
        instructions=(
            "To change the open document, end your reply with\n"
            '<document_edits>[{"action": "replace", "start": 0, "startText": "...", '
            '"endText": "...", "text": "..."}]</document_edits>'
        ),
    ),
    "idea_update": BlockType(
        tag="idea_update",
        record_model=IdeaUpdate,
        instructions=(
            "To fill in a new idea document, end your reply with\n"
            '<idea_update>{"title": "...", "summary": "...", "description": "...", '
            '"tags": ["..."]}</idea_update>'
        ),
        many=False,
    ),
}


@dataclass(frozen=True)
class BlockExtraction:
    records: Optional[List[BaseModel]]
    remaining_text: str

    @property
    def found(self) -> bool:
        return self.records is not None


def _join_around(before: str, after: str) -> str:
    """Glue the text on both sides of a removed block with a single separator."""
    gap = before[len(before.rstrip()) :] + after[: len(after) - len(after.lstrip())]
    sep = "\n" if "\n" in gap else " "
    return (before.rstrip() + sep + after.lstrip()).strip()


class BlockExtractor:
    """Pull named structured blocks out of finished (non-streaming) text."""

    def __init__(self, block_types: Optional[Dict[str, BlockType]] = None):
        self.block_types = dict(BLOCK_TYPES if block_types is None else block_types)

    @staticmethod
    def locate(text: str, tag: str) -> Optional[tuple[int, int, str]]:
        """Return (start, end, inner) of the first complete <tag>...</tag> region."""
        region = scan_tag_region(text, tag)
        if region is None or region.end == -1:
            return None
        return region.start, region.end, region.inner

    def extract(self, text: str, tag: str, label: Optional[str] = None) -> BlockExtraction:
        region = self.locate(text, tag)
        if region is None:
            return BlockExtraction(records=None, remaining_text=text)

        start, end, inner = region
        records = self._parse(inner, tag, label or tag)
        if records is None:
            return BlockExtraction(records=None, remaining_text=text)

        return BlockExtraction(records=records, remaining_text=_join_around(text[:start], text[end:]))

    def extract_all(self, text: str, tags: Iterable[str], label: Optional[str] = None) -> tuple[Dict[str, List[BaseModel]], str]:
        found: Dict[str, List[BaseModel]] = {}
        for tag in tags:
            result = self.extract(text, tag, label)
            if result.found:
                found[tag] = result.records or []
                text = result.remaining_text
        return found, text

    def _parse(self, inner: str, tag: str, label: str) -> Optional[List[BaseModel]]:
        block_type = self.block_types.get(tag)
        if block_type is None:
            logger.warning(f"[{label}] no payload model registered for <{tag}>")
            return None
        try:
            payload = json.loads(inner.strip())
        except json.JSONDecodeError as e:
            logger.warning(f"[{label}] failed to parse <{tag}> JSON: {e}")
            return None
        expected = list if block_type.many else dict
        if not isinstance(payload, expected):
            logger.warning(f"[{label}] <{tag}> payload is {type(payload).__name__}, expected {expected.__name__}")
            return None
        items = payload if block_type.many else [payload]
        try:
            return [block_type.record_model.model_validate(item) for item in items]
        except ValidationError as e:
            logger.warning(f"[{label}] invalid <{tag}> record: {e.error_count()} error(s)")
            return None


def dump_records(records: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [r.model_dump(by_alias=True, exclude_none=True) for r in records]
