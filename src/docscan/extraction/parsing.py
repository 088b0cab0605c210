"""Helpers for turning chatty model output into JSON objects."""

from __future__ import annotations

import json
import re
from typing import Any, Dict

_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")


class JsonParseError(ValueError):
    """Model output could not be read as a JSON object."""


def extract_json_blob(text: str) -> str:
    """Strip code fences and surrounding prose, keeping the outermost object."""

    match = _JSON_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        return text[start : end + 1].strip()
    if start != -1:
        # Truncated output: keep everything from the first brace so repair can close it.
        return text[start:].strip()
    return text.strip()


def repair_json(blob: str) -> str:
    """Apply one round of common fixes to almost-JSON model output."""

    repaired = _BARE_KEY_RE.sub(r'\1"\2"\3', blob)
    repaired = _TRAILING_COMMA_RE.sub(r"\1", repaired)

    closers: list[str] = []
    in_string = False
    escaped = False
    for char in repaired:
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
            closers.append("}")
        elif char == "[":
            closers.append("]")
        elif char in "}]" and closers and closers[-1] == char:
            closers.pop()

    if in_string:
        repaired += '"'
    repaired = repaired.rstrip()
    if repaired.endswith(","):
        repaired = repaired[:-1]
    return repaired + "".join(reversed(closers))


def parse_json_object(text: str, *, repair: bool = False) -> Dict[str, Any]:
    """Decode ``text`` into a dict, optionally attempting a single repair pass."""

    blob = extract_json_blob(text)
    try:
        parsed = json.loads(blob)
    except json.JSONDecodeError as exc:
        if not repair:
            raise JsonParseError(f"invalid JSON: {exc}") from exc
        try:
            parsed = json.loads(repair_json(blob))
        except json.JSONDecodeError as repair_exc:
            snippet = blob.replace("\n", " ")[:200]
            raise JsonParseError(
                f"invalid JSON after repair: {repair_exc}: payload={snippet}"
            ) from repair_exc

    if not isinstance(parsed, dict):
        raise JsonParseError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


__all__ = ["JsonParseError", "extract_json_blob", "parse_json_object", "repair_json"]
