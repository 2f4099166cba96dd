"""Tests for glm_bridge.ai.providers.glm.sse: event-stream decoding."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from glm_bridge.ai.providers.glm.sse import SseDecoder, decode_sse_stream, parse_sse_record
from tests.conftest import make_chunk, sse_body

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import pytest

    from glm_bridge.ai.providers.glm.wire import GlmChatCompletionChunk


async def _bytes(*blocks: bytes) -> AsyncIterator[bytes]:
    for block in blocks:
        yield block


async def _decode(*blocks: bytes) -> list[GlmChatCompletionChunk]:
    return [chunk async for chunk in decode_sse_stream(_bytes(*blocks))]


class TestParseSseRecord:
    def test_data_line(self) -> None:
        (chunk,) = parse_sse_record('data: {"id": "a"}')
        assert chunk.id == "a"

    def test_done_and_blank_payloads_ignored(self) -> None:
        assert parse_sse_record("data: [DONE]") == []
        assert parse_sse_record("data:   ") == []

    def test_non_data_lines_ignored(self) -> None:
        record = 'event: message\nid: 3\n: comment\ndata: {"id": "b"}'
        assert [c.id for c in parse_sse_record(record)] == ["b"]

    def test_no_space_after_prefix(self) -> None:
        (chunk,) = parse_sse_record('data:{"id": "c"}')
        assert chunk.id == "c"

    def test_malformed_json_logged_and_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="glm_bridge.ai.providers.glm.sse"):
            assert parse_sse_record("data: {not json") == []
        assert "Failed to parse GLM SSE chunk" in caplog.text

    def test_schema_mismatch_skipped(self) -> None:
        assert parse_sse_record('data: {"choices": "nope"}') == []


class TestSseDecoder:
    def test_record_split_across_feeds(self) -> None:
        decoder = SseDecoder()
        assert decoder.feed(b'data: {"id"') == []
        (chunk,) = decoder.feed(b': "x"}\n\n')
        assert chunk.id == "x"

    def test_multibyte_character_split_across_feeds(self) -> None:
        payload = sse_body(make_chunk(content="héllo"), done=False)
        split_at = payload.index("é".encode()) + 1
        decoder = SseDecoder()
        assert decoder.feed(payload[:split_at]) == []
        (chunk,) = decoder.feed(payload[split_at:])
        assert chunk.choices is not None
        assert chunk.choices[0].delta is not None
        assert chunk.choices[0].delta.content == "héllo"

    def test_crlf_line_endings(self) -> None:
        decoder = SseDecoder()
        (chunk,) = decoder.feed(b'data: {"id": "r"}\r\n\r\n')
        assert chunk.id == "r"

    def test_flush_processes_unterminated_record(self) -> None:
        decoder = SseDecoder()
        assert decoder.feed(b'data: {"id": "tail"}') == []
        (chunk,) = decoder.flush()
        assert chunk.id == "tail"

    def test_flush_blank_remainder(self) -> None:
        decoder = SseDecoder()
        decoder.feed(b"\n")
        assert decoder.flush() == []


class TestDecodeSseStream:
    async def test_two_records_in_order(self) -> None:
        chunks = await _decode(sse_body(
            make_chunk(content="Hi", chunk_id="1"),
            make_chunk(content=" there", chunk_id="2"),
        ))
        assert [c.id for c in chunks] == ["1", "2"]

    async def test_malformed_record_does_not_end_stream(self) -> None:
        body = b"data: {broken\n\n" + sse_body(make_chunk(content="ok"))
        chunks = await _decode(body)
        assert len(chunks) == 1

    async def test_done_does_not_end_stream(self) -> None:
        body = sse_body(make_chunk(chunk_id="1")) + sse_body(make_chunk(chunk_id="2"), done=False)
        chunks = await _decode(body)
        assert [c.id for c in chunks] == ["1", "2"]

    async def test_byte_at_a_time(self) -> None:
        body = sse_body(make_chunk(content="日本"))
        chunks = await _decode(*(body[i:i + 1] for i in range(len(body))))
        assert len(chunks) == 1
        assert chunks[0].choices is not None
        assert chunks[0].choices[0].delta is not None
        assert chunks[0].choices[0].delta.content == "日本"

    async def test_trailing_record_without_blank_line(self) -> None:
        body = f"data: {json.dumps(make_chunk(chunk_id='last'))}".encode()
        chunks = await _decode(body)
        assert [c.id for c in chunks] == ["last"]

    async def test_empty_stream(self) -> None:
        assert await _decode() == []
