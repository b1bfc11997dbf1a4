import json
from dataclasses import dataclass
from typing import Any, Optional

_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class TagRegion:
    start: int  # index of the opening tag
    end: int  # index just past the closing tag, -1 when unterminated
    inner: str
    payload: Any = None
    decoded: bool = False


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def scan_tag_region(text: str, tag: str) -> Optional[TagRegion]:
    """
    Locate the first `<tag>...</tag>` region whose body is a JSON value.

    The body is decoded in place, so a closing tag that appears inside a JSON
    string does not end the region. When the body does not decode (or is not
    followed by the closing tag) the region ends at the first closing tag and
    `decoded` is False; callers report such a region as malformed.
    """
    opening, closing = f"<{tag}>", f"</{tag}>"
    start = text.find(opening)
    if start == -1:
        return None
    inner_start = start + len(opening)

    try:
        payload, json_end = _decoder.raw_decode(text, _skip_whitespace(text, inner_start))
    except json.JSONDecodeError:
        pass
    else:
        close = _skip_whitespace(text, json_end)
        if text.startswith(closing, close):
            return TagRegion(start, close + len(closing), text[inner_start:close], payload, decoded=True)

    close = text.find(closing, inner_start)
    if close == -1:
        return TagRegion(start, -1, text[inner_start:])
    return TagRegion(start, close + len(closing), text[inner_start:close])
