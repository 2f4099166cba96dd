"""Content generator protocol definition.

The host client talks to every backend through this interface.  Concrete
generators (currently only :class:`~glm_bridge.ai.providers.glm.GlmContentGenerator`)
should satisfy it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from google.genai import types as gtypes

    from glm_bridge.ai.types import (
        CountTokensRequest,
        EmbedContentRequest,
        GenerateContentRequest,
    )


@runtime_checkable
class ContentGenerator(Protocol):
    """Protocol that every content generator must satisfy.

    All four entry-points speak the ``google.genai`` content model:

    * :pymeth:`generate_content` -- one complete response.
    * :pymeth:`generate_content_stream` -- incremental response fragments.
    * :pymeth:`count_tokens` -- token count for a set of contents.
    * :pymeth:`embed_content` -- embeddings, where the backend supports them.
    """

    async def generate_content(
        self,
        request: GenerateContentRequest,
    ) -> gtypes.GenerateContentResponse:
        """Return the complete response for *request*."""
        ...

    async def generate_content_stream(
        self,
        request: GenerateContentRequest,
    ) -> AsyncIterator[gtypes.GenerateContentResponse]:
        """Open a stream for *request*.

        Connection and HTTP-status errors surface when this coroutine is
        awaited; the returned iterator then yields fragments lazily and can
        be consumed with ``async for``.
        """
        ...

    async def count_tokens(
        self,
        request: CountTokensRequest,
    ) -> gtypes.CountTokensResponse:
        ...

    async def embed_content(
        self,
        request: EmbedContentRequest,
    ) -> gtypes.EmbedContentResponse:
        ...
