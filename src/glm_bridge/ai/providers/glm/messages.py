"""Message normalisation: Gemini ``Content`` turns to GLM chat messages.

Conversion is best-effort and never raises on odd input; parts the GLM
protocol cannot carry are dropped or replaced by placeholders.
"""

from __future__ import annotations

from typing import Any

from google.genai import types as gtypes
from pydantic import ValidationError

from glm_bridge.ai.types import ContentsInput
from glm_bridge.ai.utils.safe_json import safe_json_dumps


# ---------------------------------------------------------------------------
# Content normalisation
# ---------------------------------------------------------------------------


def _to_part(entry: Any) -> gtypes.Part:
    if isinstance(entry, gtypes.Part):
        return entry
    if isinstance(entry, dict):
        try:
            return gtypes.Part.model_validate(entry)
        except ValidationError:
            text = entry.get("text")
            return gtypes.Part(text=text if isinstance(text, str) else str(entry))
    return gtypes.Part(text=str(entry))


def _to_content(entry: Any) -> gtypes.Content:
    if isinstance(entry, gtypes.Content):
        return entry
    if isinstance(entry, str):
        return gtypes.Content(role="user", parts=[gtypes.Part(text=entry)])
    if isinstance(entry, gtypes.Part):
        return gtypes.Content(role="user", parts=[entry])
    if isinstance(entry, dict):
        if "role" not in entry and "parts" not in entry:
            return gtypes.Content(role="user", parts=[_to_part(entry)])
        try:
            return gtypes.Content.model_validate(entry)
        except ValidationError:
            # Salvage what we can from a turn with unknown keys or bad parts.
            role = entry.get("role")
            parts = entry.get("parts")
            return gtypes.Content(
                role=role if isinstance(role, str) else "user",
                parts=[_to_part(part) for part in parts] if isinstance(parts, list) else [],
            )
    return gtypes.Content(role="user", parts=[gtypes.Part(text=str(entry))])


def normalize_contents(source: ContentsInput | None) -> list[gtypes.Content]:
    """Coerce the loose ``contents`` argument into a list of turns.

    Strings and bare parts become single-part user turns.
    """
    if source is None:
        return []
    entries = source if isinstance(source, list) else [source]
    return [_to_content(entry) for entry in entries]


# ---------------------------------------------------------------------------
# System instruction
# ---------------------------------------------------------------------------


def extract_system_instruction(instruction: Any) -> str:
    """Flatten a Gemini ``system_instruction`` into a plain string."""
    if isinstance(instruction, str):
        return instruction
    if not instruction:
        return ""
    if isinstance(instruction, gtypes.Content):
        return "\n".join(part.text for part in instruction.parts or [] if part.text)
    if isinstance(instruction, list):
        return "\n".join(
            entry if isinstance(entry, str) else (getattr(entry, "text", None) or "")
            for entry in instruction
        )
    if isinstance(instruction, gtypes.Part):
        return instruction.text or ""
    return str(instruction)


# ---------------------------------------------------------------------------
# Turn conversion
# ---------------------------------------------------------------------------


def _attachment_placeholder(part: gtypes.Part) -> str:
    mime_type = None
    if part.inline_data is not None:
        mime_type = part.inline_data.mime_type
    if not mime_type and part.file_data is not None:
        mime_type = part.file_data.mime_type
    if mime_type:
        return f"[Attachment omitted: {mime_type}]"
    return "[Attachment omitted]"


def convert_content(content: gtypes.Content) -> list[dict[str, Any]]:
    """Convert one Gemini turn into zero or more GLM messages.

    Function results in a user turn become standalone ``tool`` messages,
    emitted ahead of the turn's own user message.
    """
    role = "assistant" if content.role == "model" else "user"
    text_parts: list[str] = []
    reasoning_parts: list[str] = []
    tool_calls: list[dict[str, Any]] = []
    messages: list[dict[str, Any]] = []

    for part in content.parts or []:
        if part.thought:
            if part.text:
                reasoning_parts.append(part.text)
            continue

        if part.text:
            text_parts.append(part.text)
            continue

        if part.function_response is not None and role == "user":
            response = part.function_response
            messages.append({
                "role": "tool",
                "name": response.name,
                "tool_call_id": response.id or response.name or "tool",
                "content": safe_json_dumps(
                    response.response if response.response is not None else {}
                ),
            })
            continue

        if part.function_call is not None and role == "assistant":
            call = part.function_call
            tool_call: dict[str, Any] = {
                "type": "function",
                "function": {
                    "name": call.name,
                    "arguments": safe_json_dumps(call.args if call.args is not None else {}),
                },
            }
            if call.id:
                tool_call["id"] = call.id
            tool_calls.append(tool_call)
            continue

        if part.inline_data is not None or part.file_data is not None:
            text_parts.append(_attachment_placeholder(part))

    if role == "assistant":
        if not (text_parts or tool_calls or reasoning_parts):
            return messages
        assistant_msg: dict[str, Any] = {"role": "assistant"}
        if text_parts:
            assistant_msg["content"] = "\n".join(text_parts)
        elif tool_calls and not reasoning_parts:
            assistant_msg["content"] = None
        else:
            assistant_msg["content"] = ""
        if reasoning_parts:
            assistant_msg["reasoning_content"] = "".join(reasoning_parts)
        if tool_calls:
            assistant_msg["tool_calls"] = tool_calls
        messages.append(assistant_msg)
    elif text_parts:
        messages.append({"role": "user", "content": "\n".join(text_parts)})

    return messages


def convert_contents(
    contents: list[gtypes.Content],
    system_instruction: Any = None,
) -> list[dict[str, Any]]:
    """Convert a full conversation, led by an optional system message."""
    messages: list[dict[str, Any]] = []
    if system_instruction:
        messages.append({
            "role": "system",
            "content": extract_system_instruction(system_instruction),
        })
    for content in contents:
        messages.extend(convert_content(content))
    return messages
