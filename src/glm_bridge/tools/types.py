from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable


class ToolErrorType(str, Enum):
    INVALID_TOOL_PARAMS = "invalid_tool_params"
    WEB_SEARCH_FAILED = "web_search_failed"


@dataclass
class ToolError:
    """Failure reported inside a tool result instead of being raised."""
    message: str
    type: ToolErrorType


@dataclass
class ToolResult:
    """Result of a tool execution.

    ``llm_content`` goes back to the model, ``return_display`` to the user.
    """
    llm_content: str
    return_display: str
    sources: list[dict[str, Any]] | None = None
    error: ToolError | None = None


@dataclass
class Tool:
    """An executable tool with schema and execute function."""
    name: str
    description: str
    label: str
    parameters: dict[str, Any]  # JSON Schema
    execute: Callable[..., Awaitable[ToolResult]]  # async callable
