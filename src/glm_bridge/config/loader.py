"""YAML configuration loader with multi-level priority merging.

Priority (highest wins):
  1. Environment variables (GLM_* prefix)
  2. Project-level .glm/settings.yaml
  3. User-level ~/.glm/settings.yaml
  4. Built-in defaults

The API key is resolved separately by
:func:`glm_bridge.ai.env_api_keys.get_env_api_key` when the files leave it
unset.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from glm_bridge.ai.env_api_keys import get_env_api_key
from glm_bridge.config.settings import GlmSettings

if TYPE_CHECKING:
    from pathlib import Path

SETTINGS_DIR_NAME = ".glm"
SETTINGS_FILE_NAME = "settings.yaml"

# Environment variable mappings: env_var -> (dotted.path, type_converter)
_ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "GLM_MODEL": ("model", str),
    "GLM_AUTH_TYPE": ("auth_type", str),
    "GLM_USER_AGENT": ("user_agent", str),
    "GLM_CLEAR_THINKING": ("clear_thinking", bool),
    "GLM_DISABLE_THINKING": ("web_search.disable_thinking", bool),
    "GLM_SEARCH_MODEL": ("web_search.model", str),
    "GLM_VERBOSE": ("verbose", bool),
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base, returning a new dict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _set_nested(data: dict[str, Any], dotted_path: str, value: Any) -> None:
    parts = dotted_path.split(".")
    current = data
    for part in parts[:-1]:
        if part not in current or not isinstance(current[part], dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping in {path}, got {type(data).__name__}")
    return data


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    result = dict(data)
    for env_var, (dotted_path, type_conv) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        converted: Any = _parse_bool(value) if type_conv is bool else value
        _set_nested(result, dotted_path, converted)
    return result


def _settings_file(base_dir: Path) -> Path:
    return base_dir / SETTINGS_DIR_NAME / SETTINGS_FILE_NAME


async def load_settings(
    project_dir: Path | None = None,
    user_dir: Path | None = None,
) -> GlmSettings:
    """Load settings from YAML files with priority merging.

    Priority: env vars > project .glm/settings.yaml > user ~/.glm/settings.yaml > defaults.
    """
    merged: dict[str, Any] = {}

    # 1. User-level settings (lowest priority file)
    if user_dir is not None:
        user_file = _settings_file(user_dir)
        if user_file.exists():
            merged = _deep_merge(merged, _load_yaml_file(user_file))

    # 2. Project-level settings (overrides user)
    if project_dir is not None:
        project_file = _settings_file(project_dir)
        if project_file.exists():
            merged = _deep_merge(merged, _load_yaml_file(project_file))

    # 3. Environment variable overrides (highest priority)
    merged = _apply_env_overrides(merged)
    if not merged.get("api_key"):
        merged["api_key"] = get_env_api_key("glm")

    try:
        return GlmSettings.model_validate(merged)
    except ValidationError as e:
        raise ValueError(f"Invalid settings: {e}") from e
