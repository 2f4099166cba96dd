"""Server-Sent-Events decoding for GLM streaming responses.

Turns raw body bytes into :class:`GlmChatCompletionChunk` objects and knows
nothing about how chunks are interpreted.  A record that fails to parse is
logged and skipped; it never ends the stream.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from glm_bridge.ai.providers.glm.wire import GlmChatCompletionChunk

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)

EVENT_BOUNDARY = "\n\n"
DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def parse_sse_record(record: str) -> list[GlmChatCompletionChunk]:
    """Parse the ``data:`` lines of one SSE record."""
    chunks: list[GlmChatCompletionChunk] = []
    for raw_line in record.split("\n"):
        line = raw_line.strip()
        if not line.startswith(DATA_PREFIX):
            continue
        data = line[len(DATA_PREFIX):].strip()
        if not data or data == DONE_SENTINEL:
            continue
        try:
            chunks.append(GlmChatCompletionChunk.model_validate(json.loads(data)))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning("Failed to parse GLM SSE chunk: %s", exc)
    return chunks


class SseDecoder:
    """Incremental SSE record splitter.

    Feed it byte blocks as they arrive; partial UTF-8 sequences and partial
    records are buffered until complete.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> list[GlmChatCompletionChunk]:
        self._buffer += self._decoder.decode(data)
        self._buffer = self._buffer.replace("\r\n", "\n")
        chunks: list[GlmChatCompletionChunk] = []
        boundary = self._buffer.find(EVENT_BOUNDARY)
        while boundary != -1:
            record = self._buffer[:boundary]
            self._buffer = self._buffer[boundary + len(EVENT_BOUNDARY):]
            chunks.extend(parse_sse_record(record))
            boundary = self._buffer.find(EVENT_BOUNDARY)
        return chunks

    def flush(self) -> list[GlmChatCompletionChunk]:
        """Process whatever is left once the byte stream has ended."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        if not remainder.strip():
            return []
        return parse_sse_record(remainder.replace("\r\n", "\n"))


async def decode_sse_stream(
    byte_stream: AsyncIterable[bytes],
) -> AsyncIterator[GlmChatCompletionChunk]:
    """Lazily decode *byte_stream* into GLM chunk objects."""
    decoder = SseDecoder()
    async for data in byte_stream:
        for chunk in decoder.feed(data):
            yield chunk
    for chunk in decoder.flush():
        yield chunk
