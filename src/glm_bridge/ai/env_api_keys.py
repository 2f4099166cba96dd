from __future__ import annotations

import os

# Provider name -> ordered list of environment variable names to probe.
# The first non-empty value wins.
_ENV_KEY_MAP: dict[str, list[str]] = {
    "glm": ["GLM_API_KEY", "ZAI_API_KEY"],
    "zai": ["ZAI_API_KEY", "GLM_API_KEY"],
}

# Endpoint overrides, probed in the same first-non-empty order.
_ENV_ENDPOINT_VARS: list[str] = ["GLM_API_BASE_URL", "ZAI_API_BASE_URL"]


def get_env_api_key(provider: str = "glm") -> str | None:
    """Return the first non-empty API key found in the environment for *provider*.

    Returns ``None`` when the provider is unknown or no matching variable is
    set.
    """
    for var in _ENV_KEY_MAP.get(provider, []):
        val = os.environ.get(var)
        if val:
            return val
    return None


def get_env_endpoint() -> str | None:
    """Return the endpoint override from the environment, if any."""
    for var in _ENV_ENDPOINT_VARS:
        val = os.environ.get(var)
        if val:
            return val
    return None
