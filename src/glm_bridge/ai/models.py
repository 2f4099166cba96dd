from __future__ import annotations

from glm_bridge.ai.env_api_keys import get_env_endpoint

DEFAULT_GLM_ENDPOINT = "https://api.z.ai/api/coding/paas/v4/chat/completions"

DEFAULT_GLM_MODEL = "glm-4.7"
"""Model used when the caller names a non-GLM model (e.g. a Gemini id)."""

DEFAULT_SEARCH_MODEL = "glm-5"
"""Model used for the native web-search request."""

GLM_MODEL_PREFIX = "glm-"


def map_model_name(model: str | None, default: str = DEFAULT_GLM_MODEL) -> str:
    """Return *model* if it is already a GLM id, otherwise *default*.

    Foreign model names are replaced rather than rejected so a client
    configured for another vendor keeps working.
    """
    if model and model.startswith(GLM_MODEL_PREFIX):
        return model
    return default


def resolve_endpoint(override: str | None = None) -> str:
    """Resolve the chat-completions URL.

    Priority: explicit *override* > ``GLM_API_BASE_URL`` >
    ``ZAI_API_BASE_URL`` > :data:`DEFAULT_GLM_ENDPOINT`.
    """
    return override or get_env_endpoint() or DEFAULT_GLM_ENDPOINT
