"""Shared plumbing for oracle agents.

``BaseAgent._complete`` sends one chat completion through the configured
backend.  The call is retried on transient errors and bounded by
``ORACLE_TIMEOUT_SECONDS``; any failure surfaces as ``OracleError``, which
subclasses turn into their own fallback answers.
"""

from __future__ import annotations

import asyncio
import copy
import time
from typing import Any, TypeVar

import pydantic

from script_sentinel.agents import config, llm_client
from script_sentinel.utils import errors, json_parsing, logger, retry

log = logger.create_logger("BaseAgent")

T = TypeVar("T", bound=pydantic.BaseModel)


class BaseAgent:
    """Common base of the oracle agents.

    Subclasses pick the system prompt, sampling settings and, for JSON
    replies, a ``response_model`` sent as a strict ``response_format``.
    """

    agent_name: str = "BaseAgent"
    instructions: str = ""
    max_tokens: int = 1024
    temperature: float = 0.3
    response_model: type[pydantic.BaseModel] | None = None

    def __init__(
        self,
        chat_client: llm_client.ChatClient | None = None,
        call_config: config.OracleCallConfig | None = None,
    ) -> None:
        """Create the agent, optionally with a pre-built client.

        Args:
            chat_client: Client to use instead of building one from
                the environment in ``initialise()``.
            call_config: Timeout and retry limits.  Read from the
                environment when omitted.
        """
        self._chat_client = chat_client
        self._call_config = call_config or config.OracleCallConfig()

    def initialise(self) -> bool:
        """Create the underlying LLM chat client if none was injected.

        Returns:
            ``True`` when a client is available.
        """
        if self._chat_client is None:
            self._chat_client = llm_client.get_chat_client(
                agent_name=self.agent_name
            )
        return self._chat_client is not None

    @property
    def is_configured(self) -> bool:
        """``True`` once a backend client is attached."""
        return self._chat_client is not None

    # ── Request construction ────────────────────────────────────

    @staticmethod
    def _prepare_strict_schema(schema: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of *schema* that strict structured output accepts.

        Strict mode rejects any object schema that allows extra keys or
        leaves a property optional, so every object node, wherever it
        nests, is closed and has all its properties required.
        """
        strict = copy.deepcopy(schema)
        pending: list[Any] = [strict]
        while pending:
            node = pending.pop()
            if isinstance(node, list):
                pending.extend(node)
                continue
            if not isinstance(node, dict):
                continue
            if node.get("type") == "object":
                node["additionalProperties"] = False
                node["required"] = list(node.get("properties", {}))
            pending.extend(node.values())
        return strict

    def _response_format(self) -> dict[str, Any] | None:
        """Build the ``response_format`` payload for ``response_model``."""
        if self.response_model is None:
            return None
        return {
            "type": "json_schema",
            "json_schema": {
                "name": self.response_model.__name__.lstrip("_"),
                "strict": True,
                "schema": self._prepare_strict_schema(
                    self.response_model.model_json_schema(by_alias=True)
                ),
            },
        }

    def _build_messages(
        self,
        user_prompt: str,
        *,
        instructions: str | None = None,
        history: list[dict[str, str]] | None = None,
    ) -> list[dict[str, str]]:
        """Assemble system prompt, prior turns and the user message."""
        messages = [{"role": "system", "content": instructions or self.instructions}]
        messages.extend(history or [])
        messages.append({"role": "user", "content": user_prompt})
        return messages

    # ── Completion ──────────────────────────────────────────────

    async def _complete(
        self,
        user_prompt: str,
        *,
        instructions: str | None = None,
        history: list[dict[str, str]] | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Run one chat completion and return the response text.

        The whole call, retries included, is bounded by the
        configured timeout.

        Args:
            user_prompt: User message content.
            instructions: Override system prompt.
            history: Prior ``{"role", "content"}`` turns placed
                between the system prompt and the user message.
            max_tokens: Override max tokens.

        Returns:
            The assistant's response text (may be empty).

        Raises:
            errors.OracleError: When the client is not configured,
                the call times out, or the backend fails.
        """
        if self._chat_client is None:
            raise errors.OracleError(
                f"{self.agent_name}: chat client not initialised."
            )

        chat_client = self._chat_client
        messages = self._build_messages(
            user_prompt, instructions=instructions, history=history
        )
        request: dict[str, Any] = {
            "model": chat_client.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_completion_tokens": max_tokens or self.max_tokens,
        }
        response_format = self._response_format()
        if response_format is not None:
            request["response_format"] = response_format

        async def _invoke() -> str:
            completion = await chat_client.client.chat.completions.create(**request)
            if not completion.choices:
                return ""
            return completion.choices[0].message.content or ""

        log.debug(
            f"Agent '{self.agent_name}' sending {len(messages)} message(s) to LLM",
            {"promptChars": len(user_prompt), "maxTokens": request["max_completion_tokens"]},
        )
        start_time = time.perf_counter()
        try:
            async with asyncio.timeout(self._call_config.timeout_seconds):
                text = await retry.with_retry(
                    _invoke,
                    context=self.agent_name,
                    max_retries=self._call_config.max_retries,
                )
        except TimeoutError as exc:
            raise errors.OracleError(
                f"{self.agent_name}: no response within"
                f" {self._call_config.timeout_seconds}s"
            ) from exc
        except Exception as exc:
            raise errors.OracleError(
                f"{self.agent_name}: {errors.get_error_message(exc)}"
            ) from exc

        log.info(
            f"Agent '{self.agent_name}' completed in {time.perf_counter() - start_time:.2f}s",
            {"responseChars": len(text)},
        )
        return text

    def _parse_response(self, text: str | None, model: type[T]) -> T | None:
        """Validate the first JSON object in *text* against *model*; ``None`` if absent or invalid."""
        payload = json_parsing.extract_json_object(text)
        if payload is None:
            log.warn(
                f"{self.agent_name}: no JSON object in response",
                {"responsePreview": (text or "")[:200]},
            )
            return None
        try:
            return model.model_validate(payload)
        except pydantic.ValidationError as exc:
            log.warn(
                f"{self.agent_name}: response failed schema validation",
                {"errors": exc.error_count(), "responsePreview": (text or "")[:200]},
            )
            return None
