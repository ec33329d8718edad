"""Pydantic models for chat sessions and their messages."""

from __future__ import annotations

from typing import Literal

import pydantic

from script_sentinel.models import analysis
from script_sentinel.utils.serialization import snake_to_camel, utc_now_iso

ChatRole = Literal["user", "assistant"]


class ChatMessage(pydantic.BaseModel):
    """A single chat turn."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True, frozen=True
    )

    role: ChatRole
    content: str
    timestamp: str = pydantic.Field(default_factory=utc_now_iso)


class ChatSession(pydantic.BaseModel):
    """Persisted chat state for one session id."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    session_id: str
    messages: list[ChatMessage] = pydantic.Field(default_factory=list)
    analysis_data: analysis.AnalysisResult | None = None
    created_at: str = pydantic.Field(default_factory=utc_now_iso)
    last_active_at: str = pydantic.Field(default_factory=utc_now_iso)


class ChatHistory(pydantic.BaseModel):
    """Read view of a session: its messages and analysis snapshot."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    messages: list[ChatMessage] = pydantic.Field(default_factory=list)
    analysis_data: analysis.AnalysisResult | None = None


class ChatReply(pydantic.BaseModel):
    """The assistant's answer to one chat message."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    reply: str
    timestamp: str = pydantic.Field(default_factory=utc_now_iso)
