"""Request builder: one Gemini generate-content call to one GLM payload."""

from __future__ import annotations

from typing import Any

from google.genai import types as gtypes

from glm_bridge.ai.models import map_model_name
from glm_bridge.ai.providers.glm.messages import convert_contents, normalize_contents
from glm_bridge.ai.providers.glm.tools import (
    apply_function_filters,
    build_tool_choice,
    convert_function_declarations,
    extract_tools,
)
from glm_bridge.ai.types import GenerateContentRequest

REASONING_DIRECTIVE = "enabled"
"""GLM ``thinking.type`` sent with every request.

Reasoning is always requested; the caller's Gemini ``thinking_config`` is
not translated.
"""


def build_thinking(clear_thinking: bool = False) -> dict[str, Any]:
    return {"type": REASONING_DIRECTIVE, "clear_thinking": clear_thinking}


def _allowed_function_names(config: gtypes.GenerateContentConfig) -> list[str] | None:
    tool_config = config.tool_config
    if tool_config is None or tool_config.function_calling_config is None:
        return None
    return tool_config.function_calling_config.allowed_function_names


def _function_calling_mode(config: gtypes.GenerateContentConfig) -> Any:
    tool_config = config.tool_config
    if tool_config is None or tool_config.function_calling_config is None:
        return None
    return tool_config.function_calling_config.mode


def build_payload(
    request: GenerateContentRequest,
    *,
    stream: bool,
    clear_thinking: bool = False,
) -> dict[str, Any]:
    """Build the chat-completions request body for *request*."""
    config = request.config or gtypes.GenerateContentConfig()
    messages = convert_contents(
        normalize_contents(request.contents),
        config.system_instruction,
    )

    payload: dict[str, Any] = {
        "model": map_model_name(request.model),
        "messages": messages,
        "stream": stream,
    }

    if config.temperature is not None:
        payload["temperature"] = config.temperature
    if config.top_p is not None:
        payload["top_p"] = config.top_p
    if config.max_output_tokens is not None:
        payload["max_tokens"] = config.max_output_tokens

    allowed = _allowed_function_names(config)
    tools = apply_function_filters(extract_tools(config.tools), allowed)
    tool_definitions = convert_function_declarations(tools)
    if tool_definitions:
        payload["tools"] = tool_definitions

    tool_choice = build_tool_choice(_function_calling_mode(config), allowed)
    if tool_choice is not None:
        payload["tool_choice"] = tool_choice

    payload["thinking"] = build_thinking(clear_thinking)
    return payload
