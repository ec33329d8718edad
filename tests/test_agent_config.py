"""Tests for script_sentinel.agents.config and llm_client — backend selection."""

from __future__ import annotations

from unittest import mock

import pydantic
import pytest

from script_sentinel.agents import llm_client
from script_sentinel.agents.config import (
    AGENT_CHAT,
    AGENT_SCRIPT_CLASSIFICATION,
    AzureOpenAIConfig,
    OpenAIConfig,
    OracleCallConfig,
    resolve_backend,
    validate_llm_config,
)
from script_sentinel.settings import SentinelSettings

AZURE_ENV = {
    "AZURE_OPENAI_ENDPOINT": "https://test.openai.azure.com",
    "AZURE_OPENAI_API_KEY": "key123",
    "AZURE_OPENAI_DEPLOYMENT": "gpt-4o",
}


class TestAgentNames:
    def test_all_defined(self) -> None:
        names = [AGENT_SCRIPT_CLASSIFICATION, AGENT_CHAT]
        assert all(isinstance(n, str) and n for n in names)
        assert len(set(names)) == len(names)


class TestAzureOpenAIConfig:
    def test_defaults_are_empty(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            cfg = AzureOpenAIConfig()
        assert cfg.is_complete is False
        assert cfg.api_version == "2024-12-01-preview"

    def test_valid_when_all_set(self) -> None:
        with mock.patch.dict("os.environ", AZURE_ENV, clear=True):
            cfg = AzureOpenAIConfig()
        assert cfg.is_complete is True

    def test_invalid_without_deployment(self) -> None:
        env = {k: v for k, v in AZURE_ENV.items() if k != "AZURE_OPENAI_DEPLOYMENT"}
        with mock.patch.dict("os.environ", env, clear=True):
            cfg = AzureOpenAIConfig()
        assert cfg.is_complete is False


class TestOpenAIConfig:
    def test_defaults_are_empty(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            cfg = OpenAIConfig()
        assert cfg.is_complete is False
        assert cfg.model == "gpt-4o-mini"

    def test_valid_with_key(self) -> None:
        with mock.patch.dict("os.environ", {"OPENAI_API_KEY": "sk-test"}, clear=True):
            cfg = OpenAIConfig()
        assert cfg.is_complete is True


class TestOracleCallConfig:
    def test_defaults(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            cfg = OracleCallConfig()
        assert cfg.timeout_seconds == 30.0
        assert cfg.max_retries == 2

    def test_reads_environment(self) -> None:
        env = {"ORACLE_TIMEOUT_SECONDS": "5", "ORACLE_MAX_RETRIES": "0"}
        with mock.patch.dict("os.environ", env, clear=True):
            cfg = OracleCallConfig()
        assert cfg.timeout_seconds == 5.0
        assert cfg.max_retries == 0

    def test_rejects_non_positive_timeout(self) -> None:
        with mock.patch.dict("os.environ", {"ORACLE_TIMEOUT_SECONDS": "0"}, clear=True):
            with pytest.raises(pydantic.ValidationError):
                OracleCallConfig()


class TestSentinelSettings:
    def test_defaults(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            settings = SentinelSettings()
        assert settings.max_third_party_scripts == 10
        assert settings.context_max_scripts == 10
        assert settings.chat_history_messages == 10
        assert settings.store_backend == "memory"

    def test_rejects_unknown_backend(self) -> None:
        with mock.patch.dict("os.environ", {"SENTINEL_STORE_BACKEND": "redis"}, clear=True):
            with pytest.raises(pydantic.ValidationError):
                SentinelSettings()


class TestValidateLlmConfig:
    def test_returns_error_when_nothing_set(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            result = validate_llm_config()
        assert result is not None
        assert "OPENAI_API_KEY" in result

    def test_returns_none_for_azure(self) -> None:
        with mock.patch.dict("os.environ", AZURE_ENV, clear=True):
            assert validate_llm_config() is None

    def test_returns_none_for_openai(self) -> None:
        with mock.patch.dict("os.environ", {"OPENAI_API_KEY": "sk-test"}, clear=True):
            assert validate_llm_config() is None


class TestGetChatClient:
    def test_none_when_unconfigured(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            assert llm_client.get_chat_client() is None

    def test_prefers_azure(self) -> None:
        env = {**AZURE_ENV, "OPENAI_API_KEY": "sk-test"}
        with mock.patch.dict("os.environ", env, clear=True):
            client = llm_client.get_chat_client(agent_name="test")
        assert client is not None
        assert client.backend == "azure"
        assert client.model == "gpt-4o"

    def test_openai_uses_configured_model(self) -> None:
        env = {"OPENAI_API_KEY": "sk-test", "OPENAI_MODEL": "gpt-4.1-mini"}
        with mock.patch.dict("os.environ", env, clear=True):
            client = llm_client.get_chat_client()
        assert client is not None
        assert client.backend == "openai"
        assert client.model == "gpt-4.1-mini"


class TestResolveBackend:
    def test_azure_needs_all_three(self) -> None:
        env = {k: v for k, v in AZURE_ENV.items() if k != "AZURE_OPENAI_API_KEY"}
        with mock.patch.dict("os.environ", {**env, "OPENAI_API_KEY": "sk-test"}, clear=True):
            assert resolve_backend() == "openai"

    def test_none_when_empty(self) -> None:
        with mock.patch.dict("os.environ", {}, clear=True):
            assert resolve_backend() is None
