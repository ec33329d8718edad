"""Oracle agents: script classification and the analysis chat.

Both agents share the client, timeout and retry plumbing in
``base.py`` and differ only in prompt, temperature and what they do
with the reply.  ``get_script_classification_agent()`` and
``get_chat_agent()`` hand out one cached instance each.
"""

from __future__ import annotations

import functools
from typing import TypeVar

from script_sentinel.agents import base, chat_agent, script_classification_agent
from script_sentinel.utils import logger

log = logger.create_logger("Agents")

T = TypeVar("T", bound=base.BaseAgent)


def _init_agent(agent_cls: type[T]) -> T:
    """Build *agent_cls* and connect it to the configured backend.

    An agent without a backend is still returned; its callers fall
    back to their offline answers.
    """
    agent = agent_cls()
    if not agent.initialise():
        log.warn(f"{agent_cls.__name__} has no oracle backend; using fallback answers")
    return agent


@functools.lru_cache(maxsize=1)
def get_script_classification_agent() -> script_classification_agent.ScriptClassificationAgent:
    return _init_agent(script_classification_agent.ScriptClassificationAgent)


@functools.lru_cache(maxsize=1)
def get_chat_agent() -> chat_agent.SentinelChatAgent:
    return _init_agent(chat_agent.SentinelChatAgent)


__all__ = ["get_chat_agent", "get_script_classification_agent"]
