"""GLM content generator: the facade the host client calls.

Implements :class:`~glm_bridge.ai.providers.base.ContentGenerator` on top of
the Z.ai chat-completions endpoint.  Requests and responses stay in the
``google.genai`` content model on the caller's side; everything GLM-shaped is
confined to this package.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from google.genai import types as gtypes
from pydantic import ValidationError

from glm_bridge.ai.env_api_keys import get_env_api_key
from glm_bridge.ai.errors import GlmProtocolError
from glm_bridge.ai.providers.glm.aggregator import StreamAggregator
from glm_bridge.ai.providers.glm.messages import normalize_contents
from glm_bridge.ai.providers.glm.request import build_payload
from glm_bridge.ai.providers.glm.response import to_generate_content_response
from glm_bridge.ai.providers.glm.sse import decode_sse_stream
from glm_bridge.ai.providers.glm.transport import GlmTransport
from glm_bridge.ai.providers.glm.wire import GlmChatCompletion
from glm_bridge.ai.utils.token_estimation import estimate_token_count

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncGenerator, AsyncIterator

    import httpx

    from glm_bridge.ai.types import (
        ContentsInput,
        CountTokensRequest,
        EmbedContentRequest,
        GenerateContentRequest,
    )
    from glm_bridge.ai.utils.token_estimation import TokenEstimator
    from glm_bridge.config.settings import GlmSettings

logger = logging.getLogger(__name__)

EMBEDDINGS_UNSUPPORTED_MESSAGE = "Embeddings are not supported when using GLM auth"


def _flatten_parts(contents: ContentsInput | None) -> list[gtypes.Part]:
    return [part for content in normalize_contents(contents) for part in content.parts or []]


class _FragmentStream:
    """Async iterator over streamed fragments that owns the open response.

    ``aclose()`` releases the response whether or not iteration has started.
    """

    def __init__(
        self,
        fragments: AsyncGenerator[gtypes.GenerateContentResponse, None],
        response: httpx.Response,
    ) -> None:
        self._fragments = fragments
        self._response = response

    def __aiter__(self) -> _FragmentStream:
        return self

    async def __anext__(self) -> gtypes.GenerateContentResponse:
        return await self._fragments.__anext__()

    async def aclose(self) -> None:
        try:
            await self._fragments.aclose()
        finally:
            await self._response.aclose()


class GlmContentGenerator:
    """Content generator backed by the GLM chat-completions API.

    Parameters
    ----------
    api_key:
        Bearer token for the endpoint.
    user_agent:
        Sent verbatim as ``User-Agent``.
    endpoint:
        Full chat-completions URL; falls back to the environment and then
        the public default.
    clear_thinking:
        Value of ``thinking.clear_thinking`` on every request.
    extra_headers:
        Merged over the default headers (and may replace them).
    http_client:
        Shared ``httpx.AsyncClient``; the generator never closes a client it
        did not create.
    token_estimator:
        Used by :meth:`count_tokens`; defaults to a character heuristic.
    """

    def __init__(
        self,
        api_key: str,
        user_agent: str,
        *,
        endpoint: str | None = None,
        clear_thinking: bool = False,
        extra_headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        token_estimator: TokenEstimator | None = None,
    ) -> None:
        self._transport = GlmTransport(
            api_key,
            user_agent,
            endpoint=endpoint,
            extra_headers=extra_headers,
            client=http_client,
        )
        self._clear_thinking = clear_thinking
        self._estimate_tokens = token_estimator or estimate_token_count

    @classmethod
    def from_settings(
        cls,
        settings: GlmSettings,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> GlmContentGenerator:
        """Build a generator from loaded settings.

        Raises :class:`ValueError` when no API key is available from the
        argument, the settings or the environment.
        """
        key = api_key or settings.api_key or get_env_api_key("glm")
        if not key:
            raise ValueError("GLM API key is not configured")
        return cls(
            key,
            settings.user_agent,
            endpoint=settings.endpoint,
            clear_thinking=settings.clear_thinking,
            extra_headers=settings.extra_headers,
            http_client=http_client,
        )

    @property
    def endpoint(self) -> str:
        return self._transport.endpoint

    async def generate_content(
        self,
        request: GenerateContentRequest,
    ) -> gtypes.GenerateContentResponse:
        payload = build_payload(request, stream=False, clear_thinking=self._clear_thinking)
        data = await self._transport.post_json(payload, request.abort_event)
        try:
            completion = GlmChatCompletion.model_validate(data)
        except ValidationError as exc:
            raise GlmProtocolError(f"GLM API returned an unexpected response body: {exc}") from exc
        return to_generate_content_response(completion)

    async def generate_content_stream(
        self,
        request: GenerateContentRequest,
    ) -> AsyncIterator[gtypes.GenerateContentResponse]:
        payload = build_payload(request, stream=True, clear_thinking=self._clear_thinking)
        response = await self._transport.post_stream(payload, request.abort_event)
        fragments = self._stream_fragments(response, payload["model"], request.abort_event)
        return _FragmentStream(fragments, response)

    async def _stream_fragments(
        self,
        response: httpx.Response,
        model: str,
        abort_event: asyncio.Event | None,
    ) -> AsyncGenerator[gtypes.GenerateContentResponse, None]:
        aggregator = StreamAggregator(model)
        byte_stream = self._transport.iter_bytes(response, abort_event)
        try:
            async for chunk in decode_sse_stream(byte_stream):
                for fragment in aggregator.consume_chunk(chunk):
                    yield fragment
            if aggregator.has_pending_tool_calls:
                logger.debug("GLM stream ended with unfinished tool calls; dropping them")
        finally:
            await byte_stream.aclose()
            await response.aclose()

    async def count_tokens(
        self,
        request: CountTokensRequest,
    ) -> gtypes.CountTokensResponse:
        parts = _flatten_parts(request.contents)
        return gtypes.CountTokensResponse(total_tokens=self._estimate_tokens(parts))

    async def embed_content(
        self,
        request: EmbedContentRequest,
    ) -> gtypes.EmbedContentResponse:
        raise NotImplementedError(EMBEDDINGS_UNSUPPORTED_MESSAGE)

    async def aclose(self) -> None:
        await self._transport.aclose()
