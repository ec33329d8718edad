"""
Environment-backed settings for the oracle agents.

Two backends are recognised.  Azure OpenAI wins when its endpoint, key
and deployment are all present; otherwise an ``OPENAI_API_KEY`` selects
the public OpenAI API (or any compatible ``OPENAI_BASE_URL``).  With
neither, the agents stay unconfigured and every caller takes its
fallback path.
"""

from __future__ import annotations

from typing import Literal

import pydantic
import pydantic_settings

AGENT_SCRIPT_CLASSIFICATION = "ScriptClassificationAgent"
AGENT_CHAT = "SentinelChatAgent"

Backend = Literal["azure", "openai"]

_MISSING_BACKEND_HELP = (
    "No oracle backend is configured. Set either\n"
    "  AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_KEY and AZURE_OPENAI_DEPLOYMENT\n"
    "or\n"
    "  OPENAI_API_KEY (OPENAI_MODEL and OPENAI_BASE_URL are optional)"
)


class AzureOpenAIConfig(pydantic_settings.BaseSettings):
    """Azure OpenAI endpoint, credentials and deployment."""

    endpoint: str = pydantic.Field(default="", validation_alias="AZURE_OPENAI_ENDPOINT")
    api_key: str = pydantic.Field(default="", validation_alias="AZURE_OPENAI_API_KEY")
    deployment: str = pydantic.Field(default="", validation_alias="AZURE_OPENAI_DEPLOYMENT")
    api_version: str = pydantic.Field(default="2024-12-01-preview", validation_alias="OPENAI_API_VERSION")

    @property
    def is_complete(self) -> bool:
        return all((self.endpoint, self.api_key, self.deployment))


class OpenAIConfig(pydantic_settings.BaseSettings):
    """Standard OpenAI (or compatible) credentials and model."""

    api_key: str = pydantic.Field(default="", validation_alias="OPENAI_API_KEY")
    model: str = pydantic.Field(default="gpt-4o-mini", validation_alias="OPENAI_MODEL")
    base_url: str | None = pydantic.Field(default=None, validation_alias="OPENAI_BASE_URL")

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key)


class OracleCallConfig(pydantic_settings.BaseSettings):
    """Limits applied to every oracle call.

    Attributes:
        timeout_seconds: Wall-clock bound for one call, retries
            included.
        max_retries: Extra attempts after a transient failure.
    """

    timeout_seconds: float = pydantic.Field(default=30.0, gt=0, validation_alias="ORACLE_TIMEOUT_SECONDS")
    max_retries: int = pydantic.Field(default=2, ge=0, validation_alias="ORACLE_MAX_RETRIES")


def resolve_backend() -> Backend | None:
    """Name the backend the environment selects, if any."""
    if AzureOpenAIConfig().is_complete:
        return "azure"
    if OpenAIConfig().is_complete:
        return "openai"
    return None


def validate_llm_config() -> str | None:
    """Return a setup hint when no backend is configured, else ``None``."""
    return None if resolve_backend() else _MISSING_BACKEND_HELP
