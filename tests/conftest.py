"""Shared test fixtures for glm-bridge test suite."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Callable

import httpx
import pytest

from glm_bridge.ai.providers.glm.generator import GlmContentGenerator
from glm_bridge.ai.providers.glm.wire import GlmChatCompletionChunk

if TYPE_CHECKING:
    from pathlib import Path

TEST_ENDPOINT = "https://glm.test/v4/chat/completions"
TEST_API_KEY = "test-key"
TEST_USER_AGENT = "glm-bridge-tests/1.0"

Handler = Callable[[httpx.Request], Any]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def sse_record(payload: dict[str, Any] | str) -> bytes:
    """Encode one ``data:`` record."""
    data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {data}\n\n".encode()


def sse_body(*payloads: dict[str, Any] | str, done: bool = True) -> bytes:
    """Encode a complete event-stream body, ``[DONE]``-terminated by default."""
    body = b"".join(sse_record(payload) for payload in payloads)
    if done:
        body += sse_record("[DONE]")
    return body


def make_chunk(
    *,
    content: str | None = None,
    reasoning: str | None = None,
    tool_calls: list[dict[str, Any]] | None = None,
    finish_reason: str | None = None,
    usage: dict[str, Any] | None = None,
    chunk_id: str = "chunk-1",
    model: str | None = "glm-4.7",
) -> dict[str, Any]:
    """Build one chat-completions chunk as the vendor sends it."""
    delta: dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    if reasoning is not None:
        delta["reasoning_content"] = reasoning
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    chunk: dict[str, Any] = {
        "id": chunk_id,
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    if model is not None:
        chunk["model"] = model
    if usage is not None:
        chunk["usage"] = usage
    return chunk


def parse_chunk(data: dict[str, Any]) -> GlmChatCompletionChunk:
    return GlmChatCompletionChunk.model_validate(data)


def make_completion(
    *,
    content: Any = None,
    reasoning: Any = None,
    tool_calls: list[dict[str, Any]] | None = None,
    finish_reason: str | None = "stop",
    usage: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a non-streaming chat-completions body."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if reasoning is not None:
        message["reasoning_content"] = reasoning
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    body: dict[str, Any] = {
        "id": "resp-1",
        "model": "glm-4.7",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
    }
    if usage is not None:
        body["usage"] = usage
    return body


def make_http_client(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def make_generator(handler: Handler, **kwargs: Any) -> GlmContentGenerator:
    """A generator whose HTTP traffic is served by *handler*."""
    return GlmContentGenerator(
        TEST_API_KEY,
        TEST_USER_AGENT,
        endpoint=TEST_ENDPOINT,
        http_client=make_http_client(handler),
        **kwargs,
    )


class RequestRecorder:
    """Mock-transport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responses.pop(0)

    @property
    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clean_glm_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer credentials and endpoints out of the tests."""
    for var in (
        "GLM_API_KEY",
        "ZAI_API_KEY",
        "GLM_API_BASE_URL",
        "ZAI_API_BASE_URL",
        "GLM_MODEL",
        "GLM_AUTH_TYPE",
        "GLM_USER_AGENT",
        "GLM_CLEAR_THINKING",
        "GLM_DISABLE_THINKING",
        "GLM_SEARCH_MODEL",
        "GLM_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Provide a temporary project directory with .glm structure."""
    (tmp_path / ".glm").mkdir()
    return tmp_path
