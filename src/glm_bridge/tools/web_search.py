from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from google.genai import types as gtypes

from glm_bridge.ai.env_api_keys import get_env_api_key
from glm_bridge.ai.models import DEFAULT_SEARCH_MODEL, map_model_name
from glm_bridge.ai.providers.glm.request import build_thinking
from glm_bridge.ai.providers.glm.transport import GlmTransport
from glm_bridge.ai.providers.glm.wire import (
    GlmWebSearchResponse,
    GlmWebSearchResult,
    content_text,
)
from glm_bridge.ai.types import AuthType, GenerateContentRequest
from glm_bridge.ai.utils.validation import validate_tool_arguments
from glm_bridge.tools.types import Tool, ToolError, ToolErrorType, ToolResult

if TYPE_CHECKING:
    import httpx

    from glm_bridge.ai.providers.base import ContentGenerator
    from glm_bridge.config.settings import GlmSettings

logger = logging.getLogger(__name__)

WEB_SEARCH_TOOL_NAME = "google_web_search"
WEB_SEARCH_TOOL_DESCRIPTION = (
    "Performs a web search and returns the results. This tool is useful for "
    "finding information on the internet based on a query."
)
WEB_SEARCH_TOOL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "query": {
            "type": "string",
            "description": "The search query to find information on the web.",
        },
    },
    "required": ["query"],
}

# Model id the host client routes to its grounded-search backend.
GROUNDED_SEARCH_MODEL = "web-search"

SEARCH_PROMPT = "Summarize key points from {{search_result}}."
SEARCH_RESULT_COUNT = "5"


@dataclass
class WebSearchDependencies:
    """What the search tool needs from its host.

    ``generator`` is only used when ``settings.auth_type`` is not GLM.
    """
    settings: GlmSettings
    generator: ContentGenerator | None = None
    http_client: httpx.AsyncClient | None = None


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _source_line(index: int, title: str | None, uri: str | None) -> str:
    return f"[{index + 1}] {title or 'Untitled'} ({uri or 'No URI'})"


def format_sources(
    results: list[GlmWebSearchResult],
) -> tuple[list[dict[str, Any]] | None, str]:
    """Return grounding-style source entries and the ``Sources:`` listing."""
    if not results:
        return None, ""
    sources = [{"web": {"uri": result.link, "title": result.title}} for result in results]
    sources_text = "\n".join(
        _source_line(index, result.title, result.link)
        for index, result in enumerate(results)
    )
    return sources, sources_text


def format_fallback(results: list[GlmWebSearchResult]) -> str:
    """Render the raw hits when the model produced no answer text."""
    blocks = []
    for index, result in enumerate(results):
        snippet = f"\n{result.content}" if result.content else ""
        blocks.append(
            f"[{index + 1}] {result.title or 'Untitled'}\n{result.link or 'No URI'}{snippet}"
        )
    return "\n\n".join(blocks)


def insert_citation_markers(
    text: str,
    supports: list[gtypes.GroundingSupport],
) -> str:
    """Insert ``[n]`` markers after each supported segment.

    Segment offsets count UTF-8 bytes, not characters.
    """
    insertions: list[tuple[int, str]] = []
    for support in supports:
        segment = support.segment
        if segment is None or segment.end_index is None or support.grounding_chunk_indices is None:
            continue
        marker = "".join(f"[{index + 1}]" for index in support.grounding_chunk_indices)
        insertions.append((segment.end_index, marker))

    # Insert back to front so earlier offsets stay valid.
    insertions.sort(key=lambda item: item[0], reverse=True)

    data = text.encode("utf-8")
    pieces: list[bytes] = []
    last = len(data)
    for index, marker in insertions:
        pos = min(index, last)
        pieces.append(data[pos:last])
        pieces.append(marker.encode("utf-8"))
        last = pos
    pieces.append(data[:last])
    return b"".join(reversed(pieces)).decode("utf-8", errors="replace")


def _response_text(response: gtypes.GenerateContentResponse) -> str:
    if not response.candidates:
        return ""
    content = response.candidates[0].content
    if content is None:
        return ""
    return "".join(part.text for part in content.parts or [] if part.text and not part.thought)


def _no_results(query: str) -> ToolResult:
    return ToolResult(
        llm_content=f'No search results or information found for query: "{query}"',
        return_display="No information found.",
    )


def _search_results(query: str, text: str, sources: list[dict[str, Any]] | None) -> ToolResult:
    return ToolResult(
        llm_content=f'Web search results for "{query}":\n\n{text}',
        return_display=f'Search results for "{query}" returned.',
        sources=sources,
    )


def _search_failed(query: str, exc: Exception) -> ToolResult:
    message = f'Error during web search for query "{query}": {exc}'
    logger.warning("%s", message, exc_info=exc)
    return ToolResult(
        llm_content=f"Error: {message}",
        return_display="Error performing web search.",
        error=ToolError(message=message, type=ToolErrorType.WEB_SEARCH_FAILED),
    )


# ---------------------------------------------------------------------------
# GLM native search
# ---------------------------------------------------------------------------


def build_search_payload(query: str, settings: GlmSettings) -> dict[str, Any]:
    if settings.web_search.disable_thinking:
        thinking: dict[str, Any] = {"type": "disabled"}
    else:
        thinking = build_thinking(settings.clear_thinking)
    return {
        "model": map_model_name(settings.web_search.model or settings.model, DEFAULT_SEARCH_MODEL),
        "messages": [{"role": "user", "content": query}],
        "tools": [
            {
                "type": "web_search",
                "web_search": {
                    "enable": "True",
                    "search_engine": "search-prime",
                    "count": SEARCH_RESULT_COUNT,
                    "search_result": "True",
                    "search_prompt": SEARCH_PROMPT,
                    "content_size": "high",
                    "search_recency_filter": "noLimit",
                },
            },
        ],
        "thinking": thinking,
    }


async def _glm_search(
    query: str,
    deps: WebSearchDependencies,
    signal: asyncio.Event | None,
) -> ToolResult:
    settings = deps.settings
    api_key = settings.api_key or get_env_api_key("glm")
    if not api_key:
        raise ValueError("GLM API key is not configured.")

    transport = GlmTransport(
        api_key,
        settings.user_agent,
        endpoint=settings.endpoint,
        extra_headers=settings.extra_headers,
        client=deps.http_client,
    )
    try:
        logger.debug("GLM web_search query=%r", query)
        data = await transport.post_json(build_search_payload(query, settings), signal)
    finally:
        await transport.aclose()

    response = GlmWebSearchResponse.model_validate(data)
    message = response.choices[0].message if response.choices else None
    answer = content_text(message.content).strip() if message is not None else ""
    results = response.web_search or []
    sources, sources_text = format_sources(results)

    if not answer:
        if not results:
            return _no_results(query)
        answer = format_fallback(results)
    if sources_text:
        answer += f"\n\nSources:\n{sources_text}"
    return _search_results(query, answer, sources)


# ---------------------------------------------------------------------------
# Grounded search through the host's generator
# ---------------------------------------------------------------------------


async def _grounded_search(
    query: str,
    deps: WebSearchDependencies,
    signal: asyncio.Event | None,
) -> ToolResult:
    if deps.generator is None:
        raise ValueError("No content generator is configured for web search.")

    response = await deps.generator.generate_content(
        GenerateContentRequest(
            model=GROUNDED_SEARCH_MODEL,
            contents=[gtypes.Content(role="user", parts=[gtypes.Part(text=query)])],
            abort_event=signal,
        ),
    )
    text = _response_text(response)
    if not text.strip():
        return _no_results(query)

    metadata = response.candidates[0].grounding_metadata if response.candidates else None
    chunks = (metadata.grounding_chunks if metadata else None) or []
    supports = (metadata.grounding_supports if metadata else None) or []

    sources: list[dict[str, Any]] | None = None
    if chunks:
        sources = [
            {"web": {"uri": chunk.web.uri, "title": chunk.web.title} if chunk.web else {}}
            for chunk in chunks
        ]
        if supports:
            text = insert_citation_markers(text, supports)
        listing = "\n".join(
            _source_line(
                index,
                chunk.web.title if chunk.web else None,
                chunk.web.uri if chunk.web else None,
            )
            for index, chunk in enumerate(chunks)
        )
        text += f"\n\nSources:\n{listing}"
    return _search_results(query, text, sources)


# ---------------------------------------------------------------------------
# Tool factory
# ---------------------------------------------------------------------------


def create_web_search_tool(deps: WebSearchDependencies) -> Tool:
    tool: Tool

    async def execute_web_search(
        tool_call_id: str,
        params: dict[str, Any],
        signal: asyncio.Event | None = None,
        on_update: Any = None,
    ) -> ToolResult:
        try:
            args = validate_tool_arguments(tool, params)
        except ValueError as exc:
            return ToolResult(
                llm_content=f"Error: {exc}",
                return_display=str(exc),
                error=ToolError(message=str(exc), type=ToolErrorType.INVALID_TOOL_PARAMS),
            )
        query: str = args["query"]
        if not query.strip():
            message = "The 'query' parameter cannot be empty."
            return ToolResult(
                llm_content=f"Error: {message}",
                return_display=message,
                error=ToolError(message=message, type=ToolErrorType.INVALID_TOOL_PARAMS),
            )

        try:
            if deps.settings.auth_type == AuthType.USE_GLM:
                return await _glm_search(query, deps, signal)
            return await _grounded_search(query, deps, signal)
        except Exception as exc:
            return _search_failed(query, exc)

    tool = Tool(
        name=WEB_SEARCH_TOOL_NAME,
        description=WEB_SEARCH_TOOL_DESCRIPTION,
        label="GoogleSearch",
        parameters=WEB_SEARCH_TOOL_SCHEMA,
        execute=execute_web_search,
    )
    return tool
