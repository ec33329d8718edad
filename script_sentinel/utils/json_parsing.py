"""Recovering JSON objects from oracle replies that may carry fences or prose."""

from __future__ import annotations

import json
import re
from typing import Any


def load_json_from_text(text: str | None) -> Any:
    """Decode *text* as JSON after removing any markdown code fence.

    Returns:
        The decoded value, or ``None`` when the text is not JSON.
    """
    content = (text or "").strip()
    if content.startswith("```"):
        content = re.sub(r"```[a-zA-Z]*\n?", "", content)
        content = re.sub(r"```\s*$", "", content).strip()
    try:
        return json.loads(content)
    except (json.JSONDecodeError, ValueError):
        return None


def find_object_span(text: str) -> str | None:
    """Return the first balanced ``{...}`` span in *text*.

    Brace counting skips braces that appear inside JSON string
    literals, including escaped quotes.

    Returns:
        The span including both braces, or ``None`` when no
        opening brace is ever closed.
    """
    start = text.find("{")
    while start != -1:
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
                    return text[start : i + 1]
        # Unbalanced from this brace; try the next opening brace.
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Pull a JSON object out of free-form LLM text.

    Tries the whole (fence-stripped) text first, then the first
    balanced ``{...}`` span.

    Returns:
        The decoded object, or ``None`` when nothing decodes to a
        JSON object.
    """
    direct = load_json_from_text(text)
    if isinstance(direct, dict):
        return direct

    span = find_object_span(text or "")
    if span is None:
        return None
    try:
        decoded = json.loads(span)
    except (json.JSONDecodeError, ValueError):
        return None
    return decoded if isinstance(decoded, dict) else None
