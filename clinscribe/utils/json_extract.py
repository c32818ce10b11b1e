"""Pull a JSON object out of free-form model output."""

from __future__ import annotations

import json
from typing import Any, Iterator


def _balanced_end(text: str, start: int) -> int:
    """Index just past the brace group opened at ``text[start]``, or -1."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return -1


def iter_brace_groups(text: str) -> Iterator[str]:
    """Yield top-level balanced ``{...}`` substrings, left to right.

    Groups nested inside a yielded group are never yielded on their own, and
    an unterminated group ends the scan.
    """
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end == -1:
            return
        yield text[start:end]
        start = text.find("{", end)


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """Return the first balanced brace group that parses as a JSON object.

    Stray braces in surrounding prose are skipped. A group that fails to
    parse is rejected whole: nothing nested inside it is returned in its
    place. Returns ``None`` when no candidate parses.
    """
    if not text:
        return None
    for candidate in iter_brace_groups(text):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
