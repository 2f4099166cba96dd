"""GLM chat-completions wire schema.

Every field is optional and unknown fields are ignored, so an absent field
(``None``) stays distinguishable from an empty one (``""`` / ``[]``).
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel


class GlmTextBlock(BaseModel):
    """One element of an array-form ``content`` / ``reasoning_content``."""

    type: str | None = None
    text: str | None = None

    model_config = {"extra": "ignore"}


GlmContent = Union[str, list[GlmTextBlock], None]


class GlmFunction(BaseModel):
    name: str | None = None
    arguments: str | None = None

    model_config = {"extra": "ignore"}


class GlmToolCall(BaseModel):
    """A tool call, complete (responses) or partial (stream deltas)."""

    index: int | None = None
    id: str | None = None
    type: str | None = None
    function: GlmFunction | None = None

    model_config = {"extra": "ignore"}


class GlmCompletionTokensDetails(BaseModel):
    reasoning_tokens: int | None = None

    model_config = {"extra": "ignore"}


class GlmUsage(BaseModel):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None
    reasoning_tokens: int | None = None
    completion_tokens_details: GlmCompletionTokensDetails | None = None

    model_config = {"extra": "ignore"}


class GlmAssistantMessage(BaseModel):
    role: str | None = None
    content: GlmContent = None
    reasoning_content: GlmContent = None
    tool_calls: list[GlmToolCall] | None = None

    model_config = {"extra": "ignore"}


class GlmChoice(BaseModel):
    index: int | None = None
    message: GlmAssistantMessage | None = None
    finish_reason: str | None = None

    model_config = {"extra": "ignore"}


class GlmChatCompletion(BaseModel):
    """A complete (non-streaming) chat-completions response."""

    id: str | None = None
    model: str | None = None
    choices: list[GlmChoice] | None = None
    usage: GlmUsage | None = None

    model_config = {"extra": "ignore"}


class GlmDelta(BaseModel):
    role: str | None = None
    content: GlmContent = None
    reasoning_content: GlmContent = None
    tool_calls: list[GlmToolCall] | None = None

    model_config = {"extra": "ignore"}


class GlmChunkChoice(BaseModel):
    index: int | None = None
    delta: GlmDelta | None = None
    finish_reason: str | None = None

    model_config = {"extra": "ignore"}


class GlmChatCompletionChunk(BaseModel):
    """One streamed ``chat.completion.chunk`` record."""

    id: str | None = None
    model: str | None = None
    choices: list[GlmChunkChoice] | None = None
    usage: GlmUsage | None = None

    model_config = {"extra": "ignore"}


# ---------------------------------------------------------------------------
# Web search
# ---------------------------------------------------------------------------


class GlmWebSearchResult(BaseModel):
    title: str | None = None
    link: str | None = None
    content: str | None = None
    media: str | None = None
    refer: str | None = None

    model_config = {"extra": "ignore"}


class GlmWebSearchResponse(BaseModel):
    """Chat-completions response carrying native ``web_search`` hits."""

    choices: list[GlmChoice] | None = None
    web_search: list[GlmWebSearchResult] | None = None

    model_config = {"extra": "ignore"}


def content_text(content: GlmContent) -> str:
    """Flatten string or array-form content into plain text."""
    if not content:
        return ""
    if isinstance(content, str):
        return content
    return "".join(block.text for block in content if block.text)
