from __future__ import annotations

import json
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from google.genai import types as gtypes

TokenEstimator = Callable[[list["gtypes.Part"]], int]

# Rough per-character weights: ASCII text packs about four characters per
# token, other scripts closer to one token per character.
_ASCII_TOKENS_PER_CHAR = 0.25
_NON_ASCII_TOKENS_PER_CHAR = 1.3
_MEDIA_PART_TOKENS = 3000


def _estimate_text(text: str) -> float:
    ascii_chars = sum(1 for ch in text if ord(ch) < 128)
    other_chars = len(text) - ascii_chars
    return ascii_chars * _ASCII_TOKENS_PER_CHAR + other_chars * _NON_ASCII_TOKENS_PER_CHAR


def estimate_token_count(parts: list[gtypes.Part]) -> int:
    """Cheap offline token estimate for a flattened parts list.

    Not a tokenizer: good enough for context-window bookkeeping only.
    """
    total = 0.0
    for part in parts:
        if part.text:
            total += _estimate_text(part.text)
        elif part.function_call is not None:
            total += _estimate_text(
                json.dumps(part.function_call.model_dump(mode="json", exclude_none=True))
            )
        elif part.function_response is not None:
            total += _estimate_text(
                json.dumps(part.function_response.model_dump(mode="json", exclude_none=True))
            )
        elif part.inline_data is not None or part.file_data is not None:
            total += _MEDIA_PART_TOKENS
    return int(total)
