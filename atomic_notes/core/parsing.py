from __future__ import annotations

import json
import re
from typing import Any, List

from atomic_notes.core.errors import ParseError
from atomic_notes.core.models import ExtractedIdea


FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)


def parse_ideas(content: str) -> List[ExtractedIdea]:
    """Turn raw model text into idea candidates; any structural problem aborts the parse."""
    payload = _locate_json_array(content)
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse JSON from model response: {exc}") from exc

    if not isinstance(parsed, list):
        raise ParseError("Model response is not a JSON array.")

    ideas: List[ExtractedIdea] = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise ParseError(f"Idea at index {index} is not an object.")
        label = _as_text(item.get("label"))
        idea = _as_text(item.get("idea"))
        if not label or not idea:
            raise ParseError(f"Idea at index {index} is missing label or idea.")
        ideas.append(ExtractedIdea(label=label, idea=idea, tags=_as_tags(item.get("tags"))))
    return ideas


def _locate_json_array(content: str) -> str:
    match = FENCED_BLOCK.search(content)
    if match:
        fenced = match.group(1).strip()
        if fenced.startswith("[") and fenced.endswith("]"):
            return fenced

    start = content.find("[")
    end = content.rfind("]")
    if start != -1 and end > start:
        return content[start : end + 1]
    raise ParseError("Unable to locate JSON array in model response.")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_tags(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [tag for tag in (_as_text(t) for t in value) if tag]
