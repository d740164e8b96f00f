"""JSON extraction from free-form model responses.

Claude and other chat models wrap JSON in prose or code fences often
enough that every caller needs the same tolerant parser.
"""

from __future__ import annotations

import json
from typing import Any


def strip_code_fence(text: str) -> str:
    """Remove markdown code fences.

    Handles both multiline (```json\\n...\\n```) and single-line (```{...}```) formats.
    """
    text = text.strip()
    if not text.startswith("```"):
        return text
    text = text.removeprefix("```")
    for lang in ("json", "JSON"):
        text = text.removeprefix(lang)
    text = text.lstrip("\n")
    text = text.rsplit("```", 1)[0].strip()
    return text


def _find_balanced(text: str, opener: str, closer: str) -> Any:
    """Parse the first balanced opener..closer span, or return None."""
    start = text.find(opener)
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape_next = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape_next:
            escape_next = False
            continue
        if in_string:
            if ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
            continue
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                try:
                    return json.loads(text[start : i + 1])
                except json.JSONDecodeError:
                    return None
    return None


def extract_json_object(text: str) -> dict[str, Any]:
    """Extract the outermost JSON object from a response.

    Handles pure JSON, fenced JSON, and JSON with preamble/postamble.
    Returns an empty dict on failure.
    """
    text = strip_code_fence(text)
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = _find_balanced(text, "{", "}")
    return parsed if isinstance(parsed, dict) else {}


def extract_json_array(text: str) -> list[Any]:
    """Extract the outermost JSON array from a response.

    Returns an empty list on failure.
    """
    text = strip_code_fence(text)
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = _find_balanced(text, "[", "]")
    return parsed if isinstance(parsed, list) else []
