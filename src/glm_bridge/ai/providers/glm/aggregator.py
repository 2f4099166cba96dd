"""Stream aggregation: GLM chunks to Gemini response fragments.

Text and reasoning deltas are forwarded as soon as they arrive.  Tool-call
deltas are buffered per call until a terminal finish reason, because their
argument strings are only valid JSON once complete.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from google.genai import types as gtypes

from glm_bridge.ai.providers.glm.response import (
    convert_finish_reason,
    function_call_part,
    to_usage_metadata,
)
from glm_bridge.ai.providers.glm.wire import content_text
from glm_bridge.ai.types import PendingToolCall

if TYPE_CHECKING:
    from glm_bridge.ai.providers.glm.wire import (
        GlmChatCompletionChunk,
        GlmChunkChoice,
        GlmToolCall,
    )

DEFAULT_TOOL_CALL_ID = "tool"

_FLUSH_REASONS = frozenset({gtypes.FinishReason.STOP, gtypes.FinishReason.MAX_TOKENS})


class StreamAggregator:
    """Per-stream state machine; create one per streaming call.

    Parameters
    ----------
    model:
        Model name reported as ``model_version`` when a chunk omits its own.
    """

    def __init__(self, model: str) -> None:
        self._model = model
        self._pending: dict[str, PendingToolCall] = {}
        self._keys_by_index: dict[int, str] = {}

    @property
    def has_pending_tool_calls(self) -> bool:
        return bool(self._pending)

    def consume_chunk(self, chunk: GlmChatCompletionChunk) -> list[gtypes.GenerateContentResponse]:
        """Return the zero or more fragments *chunk* produces, in order."""
        usage = to_usage_metadata(chunk.usage)
        if not chunk.choices:
            if usage is None:
                return []
            return [self._fragment(chunk, [], None, usage)]

        fragments: list[gtypes.GenerateContentResponse] = []
        for choice in chunk.choices:
            fragments.extend(self._consume_choice(chunk, choice, usage))
        return fragments

    def _consume_choice(
        self,
        chunk: GlmChatCompletionChunk,
        choice: GlmChunkChoice,
        usage: gtypes.GenerateContentResponseUsageMetadata | None,
    ) -> list[gtypes.GenerateContentResponse]:
        fragments: list[gtypes.GenerateContentResponse] = []
        finish_reason = convert_finish_reason(choice.finish_reason)
        delta = choice.delta

        parts: list[gtypes.Part] = []
        if delta is not None:
            reasoning_delta = content_text(delta.reasoning_content)
            if reasoning_delta:
                parts.append(gtypes.Part(text=reasoning_delta, thought=True))
            text_delta = content_text(delta.content)
            if text_delta:
                parts.append(gtypes.Part(text=text_delta))
        if parts:
            fragments.append(self._fragment(chunk, parts, finish_reason, usage))

        if delta is not None:
            for call in delta.tool_calls or []:
                self._track(call)

        if finish_reason in _FLUSH_REASONS and self._pending:
            fragments.append(self._fragment(chunk, self._drain(), finish_reason, usage))
        elif not parts and finish_reason is not None:
            fragments.append(self._fragment(chunk, [], finish_reason, usage))
        return fragments

    def _resolve_key(self, call: GlmToolCall) -> str:
        name = call.function.name if call.function else None
        if call.id:
            key = call.id
        elif name:
            key = name
        elif call.index is not None and call.index in self._keys_by_index:
            # Continuation delta: OpenAI-style streams send id/name only once.
            key = self._keys_by_index[call.index]
        else:
            key = DEFAULT_TOOL_CALL_ID
        if call.index is not None:
            self._keys_by_index[call.index] = key
        return key

    def _track(self, call: GlmToolCall) -> None:
        key = self._resolve_key(call)
        name = call.function.name if call.function else None
        arguments = call.function.arguments if call.function else None

        pending = self._pending.get(key)
        if pending is None:
            pending = PendingToolCall(id=key, name=name or DEFAULT_TOOL_CALL_ID)
            self._pending[key] = pending
        elif name:
            pending.name = name
        if arguments:
            pending.args += arguments

    def _drain(self) -> list[gtypes.Part]:
        parts = [
            function_call_part(pending.id, pending.name, pending.args)
            for pending in self._pending.values()
        ]
        self._pending.clear()
        self._keys_by_index.clear()
        return parts

    def _fragment(
        self,
        chunk: GlmChatCompletionChunk,
        parts: list[gtypes.Part],
        finish_reason: gtypes.FinishReason | None,
        usage: gtypes.GenerateContentResponseUsageMetadata | None,
    ) -> gtypes.GenerateContentResponse:
        return gtypes.GenerateContentResponse(
            response_id=chunk.id,
            model_version=chunk.model or self._model,
            candidates=[
                gtypes.Candidate(
                    content=gtypes.Content(role="model", parts=parts),
                    finish_reason=finish_reason,
                ),
            ],
            usage_metadata=usage,
        )
