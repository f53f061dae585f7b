"""Structured-output helpers for the local model.

Small local models frequently ignore the requested JSON schema and wrap
the object in prose or code fences, so parsing is best-effort: the whole
reply first, then each balanced ``{...}`` substring in order.
"""

import json
from typing import Any

from pydantic import BaseModel


def schema_response_format(schema: type[BaseModel]) -> dict[str, Any]:
    """Build a ``response_format`` payload carrying the schema as a JSON string."""
    return {
        "type": "json_object",
        "schema": json.dumps(schema.model_json_schema()),
    }


def extract_json(text: str) -> dict[str, Any] | None:
    """Extract the first JSON object from a model reply.

    Args:
        text: Raw model output

    Returns:
        The decoded object, or None if no object could be found
    """
    text = text.strip()
    if not text:
        return None

    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        return value if isinstance(value, dict) else None

    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is None:
            start = text.find("{", start + 1)
            continue
        try:
            value = json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)

    return None


def _matching_brace(text: str, start: int) -> int | None:
    """Return the index of the brace closing the one at ``start``."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i

    return None
