"""HTTP transport for the GLM chat-completions endpoint.

One POST per call, no retries.  Every network await is raced against the
caller's abort event so that setting it cancels the in-flight request or
byte read.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, TypeVar

import httpx

from glm_bridge.ai.errors import AbortError, GlmApiError, GlmProtocolError
from glm_bridge.ai.models import resolve_endpoint

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def until_aborted(awaitable: Awaitable[T], abort_event: asyncio.Event | None) -> T:
    """Await *awaitable*, cancelling it and raising :class:`AbortError` on abort."""
    if abort_event is None:
        return await awaitable

    if abort_event.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise AbortError()

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(abort_event.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
            # Let the cancellation land before anyone touches the source again.
            await asyncio.wait({task})

    if task.cancelled():
        raise AbortError()
    return task.result()


async def _next_or_none(byte_iter: AsyncIterator[bytes]) -> bytes | None:
    try:
        return await byte_iter.__anext__()
    except StopAsyncIteration:
        return None


def _stream_has_no_body(response: httpx.Response) -> bool:
    return (
        response.status_code == 204
        or response.headers.get("content-length") == "0"
    )


class GlmTransport:
    """Authenticated POSTs to the GLM endpoint over an httpx client.

    The client is created lazily when none is supplied; a supplied client is
    never closed by the transport.
    """

    def __init__(
        self,
        api_key: str,
        user_agent: str,
        *,
        endpoint: str | None = None,
        extra_headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._user_agent = user_agent
        self._endpoint = resolve_endpoint(endpoint)
        self._extra_headers = dict(extra_headers or {})
        self._client = client
        self._owns_client = client is None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # No timeout: the caller's abort event is the only deadline.
            self._client = httpx.AsyncClient(timeout=None)
        return self._client

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "User-Agent": self._user_agent,
            **self._extra_headers,
        }

    async def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            await response.aread()
            body = response.text
        except (httpx.HTTPError, httpx.StreamError):
            body = ""
        finally:
            await response.aclose()
        raise GlmApiError(response.status_code, body, response.reason_phrase)

    async def _send(
        self,
        payload: dict[str, Any],
        abort_event: asyncio.Event | None,
        *,
        stream: bool,
    ) -> httpx.Response:
        client = self._get_client()
        logger.debug("POST %s model=%s stream=%s", self._endpoint, payload.get("model"), stream)
        request = client.build_request(
            "POST",
            self._endpoint,
            headers=self._headers(),
            json=payload,
        )
        response = await until_aborted(client.send(request, stream=stream), abort_event)
        await self._raise_for_status(response)
        return response

    async def post_json(
        self,
        payload: dict[str, Any],
        abort_event: asyncio.Event | None = None,
    ) -> Any:
        """POST *payload* and return the decoded JSON body."""
        response = await self._send(payload, abort_event, stream=False)
        try:
            return response.json()
        except ValueError as exc:
            raise GlmProtocolError(
                f"GLM API returned a non-JSON response body: {exc}"
            ) from exc

    async def post_stream(
        self,
        payload: dict[str, Any],
        abort_event: asyncio.Event | None = None,
    ) -> httpx.Response:
        """POST *payload* and return the still-open streaming response.

        The caller owns the response and must ``aclose()`` it.
        """
        response = await self._send(payload, abort_event, stream=True)
        if _stream_has_no_body(response):
            await response.aclose()
            raise GlmProtocolError(
                "GLM API did not return a response body for streaming"
            )
        return response

    async def iter_bytes(
        self,
        response: httpx.Response,
        abort_event: asyncio.Event | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield body bytes, honouring *abort_event* on every read."""
        byte_iter = response.aiter_bytes()
        try:
            while True:
                data = await until_aborted(_next_or_none(byte_iter), abort_event)
                if data is None:
                    return
                yield data
        finally:
            await byte_iter.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
