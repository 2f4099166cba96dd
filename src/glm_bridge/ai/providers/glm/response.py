"""Response translation: GLM chat-completions objects to Gemini responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

from google.genai import types as gtypes

from glm_bridge.ai.errors import GlmProtocolError
from glm_bridge.ai.providers.glm.wire import GlmChatCompletion, content_text
from glm_bridge.ai.utils.safe_json import parse_arguments

if TYPE_CHECKING:
    from glm_bridge.ai.providers.glm.wire import GlmToolCall, GlmUsage

_FINISH_REASONS: dict[str, gtypes.FinishReason] = {
    "stop": gtypes.FinishReason.STOP,
    "length": gtypes.FinishReason.MAX_TOKENS,
    "content_filter": gtypes.FinishReason.SAFETY,
    "tool_calls": gtypes.FinishReason.STOP,
}


def convert_finish_reason(reason: str | None) -> gtypes.FinishReason | None:
    """Map a GLM ``finish_reason`` to a Gemini ``FinishReason`` (or ``None``)."""
    if reason is None:
        return None
    return _FINISH_REASONS.get(reason)


def to_usage_metadata(
    usage: GlmUsage | None,
) -> gtypes.GenerateContentResponseUsageMetadata | None:
    """Normalise GLM usage; the flat ``reasoning_tokens`` wins over the nested one."""
    if usage is None:
        return None
    reasoning_tokens = usage.reasoning_tokens
    if reasoning_tokens is None and usage.completion_tokens_details is not None:
        reasoning_tokens = usage.completion_tokens_details.reasoning_tokens
    return gtypes.GenerateContentResponseUsageMetadata(
        prompt_token_count=usage.prompt_tokens,
        candidates_token_count=usage.completion_tokens,
        total_token_count=usage.total_tokens,
        thoughts_token_count=reasoning_tokens,
    )


def function_call_part(tool_call_id: str | None, name: str | None, arguments: str | None) -> gtypes.Part:
    return gtypes.Part(
        function_call=gtypes.FunctionCall(
            id=tool_call_id,
            name=name,
            args=parse_arguments(arguments).args,
        ),
    )


def _tool_call_part(tool_call: GlmToolCall) -> gtypes.Part:
    function = tool_call.function
    return function_call_part(
        tool_call.id,
        function.name if function else None,
        function.arguments if function else None,
    )


def to_generate_content_response(
    completion: GlmChatCompletion,
) -> gtypes.GenerateContentResponse:
    """Translate a complete GLM response.

    Raises
    ------
    GlmProtocolError
        If the response carries no choices.
    """
    if not completion.choices:
        raise GlmProtocolError("GLM API returned no choices")
    choice = completion.choices[0]
    message = choice.message

    parts: list[gtypes.Part] = []
    if message is not None:
        reasoning_text = content_text(message.reasoning_content)
        if reasoning_text:
            parts.append(gtypes.Part(text=reasoning_text, thought=True))
        message_text = content_text(message.content)
        if message_text:
            parts.append(gtypes.Part(text=message_text))
        parts.extend(_tool_call_part(call) for call in message.tool_calls or [])

    return gtypes.GenerateContentResponse(
        response_id=completion.id,
        model_version=completion.model,
        candidates=[
            gtypes.Candidate(
                content=gtypes.Content(role="model", parts=parts),
                finish_reason=convert_finish_reason(choice.finish_reason),
            ),
        ],
        usage_metadata=to_usage_metadata(completion.usage),
    )
