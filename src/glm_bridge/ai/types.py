"""Core type definitions for the GLM content generator.

Canonical content (turns, parts, responses) is expressed with the
``google.genai.types`` models; this module only adds the request envelopes
and the small value objects the GLM adapter needs on top of them.
Request envelopes are frozen dataclasses (immutable).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Union

from google.genai import types as gtypes


# ---------------------------------------------------------------------------
# Literal type aliases
# ---------------------------------------------------------------------------

GlmRole = Literal["system", "user", "assistant", "tool"]

GlmFinishReason = Literal["stop", "length", "content_filter", "tool_calls"]

GlmToolChoice = Union[
    Literal["auto", "none", "required"],
    dict[str, Any],
]
"""Vendor ``tool_choice``: a literal or ``{"type": "function", "function": {...}}``."""

ContentsInput = Union[
    str,
    gtypes.Part,
    gtypes.Content,
    dict[str, Any],
    list[Union[str, gtypes.Part, gtypes.Content, dict[str, Any]]],
]
"""Loose content input accepted by the generator (normalised to ``Content``)."""


class AuthType(str, Enum):
    """Authentication modes known to the host client."""

    LOGIN_WITH_GOOGLE = "oauth-personal"
    USE_GEMINI = "gemini-api-key"
    USE_VERTEX_AI = "vertex-ai"
    LEGACY_CLOUD_SHELL = "cloud-shell"
    COMPUTE_ADC = "compute-default-credentials"
    USE_GLM = "glm-api-key"


# ---------------------------------------------------------------------------
# Request envelopes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerateContentRequest:
    """A generate-content call as issued by the host client."""

    model: str | None
    contents: ContentsInput | None
    config: gtypes.GenerateContentConfig | None = None
    abort_event: asyncio.Event | None = None


@dataclass(frozen=True)
class CountTokensRequest:
    """A token-count call as issued by the host client."""

    model: str | None
    contents: ContentsInput | None


@dataclass(frozen=True)
class EmbedContentRequest:
    """An embedding call as issued by the host client."""

    model: str | None
    contents: ContentsInput | None


# ---------------------------------------------------------------------------
# Adapter value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedArguments:
    """Outcome of parsing a tool-call argument string.

    ``raw`` is only set on the fallback path, in which case ``args`` is
    ``{"raw": raw}``.
    """

    args: dict[str, Any]
    raw: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.raw is not None


@dataclass
class PendingToolCall:
    """Mutable tool-call state accumulated across streamed deltas."""

    id: str
    name: str
    args: str = ""
