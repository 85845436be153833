from __future__ import annotations

import json
from typing import Any


def _first_balanced_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span, ignoring braces inside JSON strings."""
    start = text.find("{")
    if start == -1:
        return None
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
                return text[start:i + 1]
    return None


def parse_json_object(text: str) -> dict[str, Any] | None:
    """Parse *text* as a JSON object, falling back to the first embedded object.

    Only the first balanced span is tried: if it is not valid JSON, nothing
    nested in it or following it is considered. Returns None when no object
    can be recovered.
    """
    stripped = text.strip()
    try:
        value = json.loads(stripped)
    except json.JSONDecodeError:
        value = None
    if isinstance(value, dict):
        return value

    candidate = _first_balanced_object(stripped)
    if candidate is None:
        return None
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None
