"""Tool schema mapping: Gemini function declarations to GLM function tools."""

from __future__ import annotations

from typing import Any

from google.genai import types as gtypes

from glm_bridge.ai.types import GlmToolChoice

_FORCING_MODES = frozenset({"ANY", "VALIDATED"})


def extract_tools(tool_list: Any) -> list[gtypes.Tool]:
    """Keep only tools that carry function declarations.

    Callables, MCP sessions and built-in tools (search, code execution)
    have no GLM function-tool equivalent and are skipped.
    """
    if not tool_list:
        return []
    entries = tool_list if isinstance(tool_list, list) else [tool_list]
    result: list[gtypes.Tool] = []
    for entry in entries:
        if isinstance(entry, dict):
            entry = gtypes.Tool.model_validate(entry)
        if isinstance(entry, gtypes.Tool) and entry.function_declarations:
            result.append(entry)
    return result


def apply_function_filters(
    tools: list[gtypes.Tool],
    allowed: list[str] | None,
) -> list[gtypes.Tool]:
    """Restrict declarations to *allowed* names; drop tools left empty."""
    if not allowed:
        return tools
    allowed_set = set(allowed)
    filtered: list[gtypes.Tool] = []
    for tool in tools:
        declarations = [
            decl
            for decl in tool.function_declarations or []
            if decl.name and decl.name in allowed_set
        ]
        if declarations:
            filtered.append(tool.model_copy(update={"function_declarations": declarations}))
    return filtered


def _lowercase_types(node: Any) -> Any:
    """Rewrite Gemini's upper-case ``type`` enums (``OBJECT``) for JSON Schema."""
    if isinstance(node, dict):
        return {
            key: value.lower() if key == "type" and isinstance(value, str) else _lowercase_types(value)
            for key, value in node.items()
        }
    if isinstance(node, list):
        return [_lowercase_types(item) for item in node]
    return node


def schema_to_json(schema: gtypes.Schema) -> dict[str, Any]:
    """Dump a legacy Gemini ``Schema`` in JSON Schema spelling."""
    dumped = schema.model_dump(mode="json", exclude_none=True, by_alias=True)
    return _lowercase_types(dumped)


def _declaration_parameters(declaration: gtypes.FunctionDeclaration) -> dict[str, Any]:
    if declaration.parameters_json_schema is not None:
        return declaration.parameters_json_schema  # type: ignore[no-any-return]
    if declaration.parameters is not None:
        return schema_to_json(declaration.parameters)
    return {}


def convert_function_declarations(tools: list[gtypes.Tool]) -> list[dict[str, Any]]:
    """Convert declarations to ``{"type": "function", "function": {...}}`` dicts."""
    definitions: list[dict[str, Any]] = []
    for tool in tools:
        for declaration in tool.function_declarations or []:
            if not declaration.name:
                continue
            function: dict[str, Any] = {"name": declaration.name}
            if declaration.description is not None:
                function["description"] = declaration.description
            function["parameters"] = _declaration_parameters(declaration)
            definitions.append({"type": "function", "function": function})
    return definitions


def _mode_name(mode: Any) -> str | None:
    if mode is None:
        return None
    return str(getattr(mode, "value", mode)).upper()


def build_tool_choice(
    mode: gtypes.FunctionCallingConfigMode | str | None,
    allowed: list[str] | None = None,
) -> GlmToolChoice | None:
    """Map a Gemini function-calling mode to a GLM ``tool_choice``.

    ``None`` means "leave the field out" (vendor default, i.e. auto).
    """
    name = _mode_name(mode)
    if name is None or name == "AUTO":
        return None
    if name == "NONE":
        return "none"
    if name in _FORCING_MODES:
        if allowed and len(allowed) == 1:
            return {"type": "function", "function": {"name": allowed[0]}}
        return "required"
    return None
