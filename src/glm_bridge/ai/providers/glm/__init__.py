from __future__ import annotations

from glm_bridge.ai.providers.glm.aggregator import StreamAggregator
from glm_bridge.ai.providers.glm.generator import GlmContentGenerator
from glm_bridge.ai.providers.glm.request import REASONING_DIRECTIVE, build_payload
from glm_bridge.ai.providers.glm.sse import decode_sse_stream
from glm_bridge.ai.providers.glm.transport import GlmTransport

__all__ = [
    "GlmContentGenerator",
    "GlmTransport",
    "StreamAggregator",
    "REASONING_DIRECTIVE",
    "build_payload",
    "decode_sse_stream",
]
