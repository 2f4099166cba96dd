from __future__ import annotations

from glm_bridge.tools.types import Tool, ToolError, ToolErrorType, ToolResult
from glm_bridge.tools.web_search import (
    WEB_SEARCH_TOOL_NAME,
    WebSearchDependencies,
    create_web_search_tool,
)

ALL_TOOLS = [
    create_web_search_tool,
]

def create_all_tools(deps: WebSearchDependencies) -> list[Tool]:
    return [fn(deps) for fn in ALL_TOOLS]

__all__ = [
    "Tool",
    "ToolError",
    "ToolErrorType",
    "ToolResult",
    "WEB_SEARCH_TOOL_NAME",
    "WebSearchDependencies",
    "create_web_search_tool",
    "create_all_tools",
]
