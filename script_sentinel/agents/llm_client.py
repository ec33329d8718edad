"""
Builds the async OpenAI SDK client the agents talk to.

The backend comes from ``config.resolve_backend()``; this module only
turns the chosen settings into a client and the model name to pass on
each request.
"""

from __future__ import annotations

import dataclasses

import openai

from script_sentinel.agents import config
from script_sentinel.utils import logger

log = logger.create_logger("LLM-Client")


@dataclasses.dataclass(frozen=True)
class ChatClient:
    """An SDK client paired with the model it should call.

    Attributes:
        client: Async OpenAI or Azure OpenAI SDK client.
        model: Model name, or the deployment name on Azure.
        backend: Which backend was selected.
    """

    client: openai.AsyncOpenAI
    model: str
    backend: config.Backend


def get_chat_client(agent_name: str | None = None) -> ChatClient | None:
    """Return a client for the configured backend, or ``None``.

    Args:
        agent_name: Agent requesting the client, for log context.
    """
    tag = {"agent": agent_name or "default"}

    match config.resolve_backend():
        case "azure":
            azure = config.AzureOpenAIConfig()
            log.info("Using Azure OpenAI", {**tag, "deployment": azure.deployment})
            sdk = openai.AsyncAzureOpenAI(
                api_key=azure.api_key,
                api_version=azure.api_version,
                azure_endpoint=azure.endpoint,
                azure_deployment=azure.deployment,
            )
            return ChatClient(client=sdk, model=azure.deployment, backend="azure")
        case "openai":
            public = config.OpenAIConfig()
            log.info("Using standard OpenAI", {**tag, "model": public.model})
            sdk = openai.AsyncOpenAI(api_key=public.api_key, base_url=public.base_url)
            return ChatClient(client=sdk, model=public.model, backend="openai")

    log.warn("No oracle backend configured; oracle calls will fall back", tag)
    return None
