"""Settings Pydantic models for glm-bridge configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field

from glm_bridge.ai.models import DEFAULT_GLM_MODEL
from glm_bridge.ai.types import AuthType

DEFAULT_USER_AGENT = "glm-bridge/0.1.0"


class WebSearchConfig(BaseModel):
    """Native web-search tool configuration."""

    disable_thinking: bool = False
    model: str | None = None

    model_config = {"extra": "ignore"}


class GlmSettings(BaseModel):
    """Everything the GLM generator and the search tool read from configuration."""

    auth_type: AuthType = AuthType.USE_GLM
    api_key: str | None = None
    endpoint: str | None = None
    model: str = DEFAULT_GLM_MODEL
    clear_thinking: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    extra_headers: dict[str, str] = Field(default_factory=dict)
    web_search: WebSearchConfig = Field(default_factory=WebSearchConfig)

    verbose: bool = False

    model_config = {"extra": "ignore"}
