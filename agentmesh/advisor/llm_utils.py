"""Shared LLM utilities: JSON object extraction and output-schema prompting."""

import json
import logging
import re
from typing import Any, Dict, Iterator, Optional, Type

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n(.*?)\n?```", re.DOTALL)


def _json_candidates(text: str) -> Iterator[str]:
    """Substrings of a model reply that may hold the JSON object, best first."""
    yield text
    for block in _FENCED_BLOCK.findall(text):
        yield block.strip()
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        yield text[start:end + 1]


def parse_llm_json(raw: Optional[str], caller: str = "LLM") -> Optional[Dict[str, Any]]:
    """Extract the JSON object a model reply carries.

    The reply may be bare JSON, wrapped in a markdown fence, or surrounded
    by prose. Arrays and scalars are not accepted: only an object is
    returned, otherwise None.
    """
    text = (raw or "").strip()
    if not text:
        return None

    for candidate in _json_candidates(text):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value

    logger.error("%s: no JSON object in reply, raw[:500]: %s", caller, text[:500])
    return None


def describe_output_schema(model: Type[BaseModel]) -> str:
    """Render an output model as the JSON shape the model must reply with.

    Each field becomes ``- "name" (type): description`` using the field
    descriptions declared on the pydantic model.
    """
    schema: Dict[str, Any] = model.model_json_schema()
    lines = ["Respond with a single JSON object with exactly these keys:"]
    for name, prop in schema.get("properties", {}).items():
        kind = prop.get("type", "string")
        desc = prop.get("description", "")
        lines.append(f'- "{name}" ({kind}): {desc}'.rstrip(": "))
    return "\n".join(lines)
