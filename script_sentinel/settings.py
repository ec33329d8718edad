"""
Service settings for the analysis and chat flows.

Environment-bound via ``pydantic_settings.BaseSettings``; a fresh
instance reads the current environment, so tests can patch
``os.environ`` before constructing one.
"""

from __future__ import annotations

import functools
from typing import Literal

import pydantic
import pydantic_settings


class SentinelSettings(pydantic_settings.BaseSettings):
    """Tunables for batching, chat context and persistence.

    Attributes:
        max_third_party_scripts: How many third-party scripts one
            analyze request classifies (discovery order).
        context_max_scripts: Upper bound on script summaries placed
            in a chat prompt.
        chat_history_messages: Prior messages replayed to the oracle
            on each chat turn.
        store_backend: ``memory`` or ``file``.
        store_dir: Directory for the ``file`` backend.
    """

    max_third_party_scripts: int = pydantic.Field(
        default=10, ge=1, validation_alias="SENTINEL_MAX_THIRD_PARTY_SCRIPTS"
    )
    context_max_scripts: int = pydantic.Field(
        default=10, ge=1, validation_alias="CONTEXT_MAX_SCRIPTS"
    )
    chat_history_messages: int = pydantic.Field(
        default=10, ge=0, validation_alias="CHAT_HISTORY_MESSAGES"
    )
    store_backend: Literal["memory", "file"] = pydantic.Field(
        default="memory", validation_alias="SENTINEL_STORE_BACKEND"
    )
    store_dir: str = pydantic.Field(
        default=".store", validation_alias="SENTINEL_STORE_DIR"
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> SentinelSettings:
    """Get the process-wide settings, read once from the environment."""
    return SentinelSettings()
