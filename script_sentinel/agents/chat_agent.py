"""Chat agent that answers questions about one analysis.

The system prompt carries the rendered analysis context; prior
turns of the session are replayed as conversation history.
"""

from __future__ import annotations

from script_sentinel.agents import base, config
from script_sentinel.agents.prompts import chat
from script_sentinel.models import chat as chat_models
from script_sentinel.utils import errors, logger

log = logger.create_logger("SentinelChatAgent")

APOLOGY = "Sorry, I encountered an error processing your question. Please try again."


class SentinelChatAgent(base.BaseAgent):
    """Text agent that produces short, context-bound chat replies."""

    agent_name = config.AGENT_CHAT
    max_tokens = 800
    temperature = 0.4

    async def answer(
        self,
        message: str,
        context: str,
        history: list[chat_models.ChatMessage] | None = None,
    ) -> str:
        """Answer *message* using the analysis *context*.

        Args:
            message: The user's question.
            context: Rendered analysis context (see
                ``analysis.context.build_analysis_context``).
            history: Prior turns of the session, oldest first.

        Returns:
            The oracle's reply, or ``APOLOGY`` when the call fails
            or comes back empty.
        """
        instructions = chat.INSTRUCTIONS_TEMPLATE.format(
            context=context, max_items=chat.MAX_LIST_ITEMS
        )
        turns = [{"role": m.role, "content": m.content} for m in history or []]
        try:
            text = await self._complete(
                message, instructions=instructions, history=turns
            )
        except errors.OracleError as error:
            log.error(
                "Chat call failed",
                {"error": errors.get_error_message(error)},
            )
            return APOLOGY

        reply = text.strip()
        if not reply:
            log.warn("Chat call returned an empty reply")
            return APOLOGY
        return reply
