"""Tests for glm_bridge.ai.env_api_keys."""

from __future__ import annotations

from typing import TYPE_CHECKING

from glm_bridge.ai.env_api_keys import get_env_api_key, get_env_endpoint

if TYPE_CHECKING:
    import pytest


class TestGetEnvApiKey:
    def test_known_provider_with_key_set(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GLM_API_KEY", "glm-test-123")
        assert get_env_api_key("glm") == "glm-test-123"

    def test_known_provider_no_key(self) -> None:
        assert get_env_api_key("glm") is None

    def test_unknown_provider_returns_none(self) -> None:
        assert get_env_api_key("unknown-provider") is None

    def test_first_matching_var_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GLM_API_KEY", "glm-key")
        monkeypatch.setenv("ZAI_API_KEY", "zai-key")
        assert get_env_api_key("glm") == "glm-key"
        assert get_env_api_key("zai") == "zai-key"

    def test_fallback_to_second_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ZAI_API_KEY", "zai-key")
        assert get_env_api_key("glm") == "zai-key"

    def test_default_provider_is_glm(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GLM_API_KEY", "glm-key")
        assert get_env_api_key() == "glm-key"

    def test_empty_string_is_treated_as_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GLM_API_KEY", "")
        assert get_env_api_key("glm") is None


class TestGetEnvEndpoint:
    def test_unset(self) -> None:
        assert get_env_endpoint() is None

    def test_glm_base_url_wins_over_zai(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GLM_API_BASE_URL", "https://glm.example/v4")
        monkeypatch.setenv("ZAI_API_BASE_URL", "https://zai.example/v4")
        assert get_env_endpoint() == "https://glm.example/v4"

    def test_zai_base_url_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ZAI_API_BASE_URL", "https://zai.example/v4")
        assert get_env_endpoint() == "https://zai.example/v4"
