"""Best-effort JSON helpers for tool-call payloads.

Neither helper raises: serialisation falls back to ``str()`` and parsing
falls back to a ``{"raw": ...}`` wrapper reported through
:class:`~glm_bridge.ai.types.ParsedArguments`.
"""

from __future__ import annotations

import json
from typing import Any

from glm_bridge.ai.types import ParsedArguments


def safe_json_dumps(value: Any) -> str:
    """Serialise *value* to JSON, or to ``str(value)`` if that fails."""
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def parse_arguments(argument_string: str | None) -> ParsedArguments:
    """Parse a tool-call argument string into an argument object.

    An empty string means "no arguments".  Anything that is not a JSON
    object is kept verbatim under ``"raw"``.
    """
    if not argument_string:
        return ParsedArguments(args={})
    try:
        parsed = json.loads(argument_string)
    except json.JSONDecodeError:
        return ParsedArguments(args={"raw": argument_string}, raw=argument_string)
    if not isinstance(parsed, dict):
        return ParsedArguments(args={"raw": argument_string}, raw=argument_string)
    return ParsedArguments(args=parsed)
