from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from glm_bridge.tools.types import Tool

# JSON Schema primitive -> accepted Python types.  ``bool`` never satisfies
# the numeric types.
_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list, tuple),
    "object": (dict,),
}


def _matches(expected: str, value: Any) -> bool:
    accepted = _JSON_TYPES.get(expected)
    if accepted is None:
        return True
    if isinstance(value, bool) and expected in ("integer", "number"):
        return False
    return isinstance(value, accepted)


def validate_tool_arguments(tool: Tool, arguments: dict[str, Any]) -> dict[str, Any]:
    """Check *arguments* against the top level of ``tool.parameters``.

    Returns a copy of the arguments.  Raises :class:`ValueError` naming the
    tool when a required argument is missing or a declared primitive type
    does not match.  Nested schemas are not descended into.
    """
    args: dict[str, Any] = dict(arguments)
    schema = tool.parameters
    if not schema:
        return args

    missing = [name for name in schema.get("required", []) if name not in args]
    if missing:
        raise ValueError(
            f"Tool '{tool.name}' missing required argument(s): {', '.join(missing)}"
        )

    properties: dict[str, Any] = schema.get("properties", {})
    for name, value in args.items():
        expected = properties.get(name, {}).get("type")
        if isinstance(expected, str) and not _matches(expected, value):
            article = "an" if expected[0] in "aeiou" else "a"
            raise ValueError(
                f"Tool '{tool.name}' argument '{name}' must be {article} {expected}"
            )

    return args
