"""Tests for the classification and chat agents with a fake oracle."""

from __future__ import annotations

import asyncio
import json

from conftest import verdict_json

from script_sentinel.agents.chat_agent import APOLOGY
from script_sentinel.models import chat


class TestScriptClassificationAgent:
    """Tests for ScriptClassificationAgent.classify()."""

    def test_valid_verdict_becomes_record(self, classification_agent_factory) -> None:
        agent, completions = classification_agent_factory(verdict_json())
        record = asyncio.run(agent.classify("https://evil-tracker.io/t.js", "evil-tracker.io"))

        assert record is not None
        assert record.script_url == "https://evil-tracker.io/t.js"
        assert record.script_name == "Evil Tracker"
        assert record.risk_level == "HIGH"
        assert record.recommendation == "BLOCK"
        assert record.destinations == ["evil-tracker.io"]

        request = completions.calls[0]
        assert request["temperature"] == 0.3
        assert request["max_completion_tokens"] == 600
        assert "evil-tracker.io" in request["messages"][-1]["content"]

    def test_fenced_answer_is_accepted(self, classification_agent_factory) -> None:
        agent, _ = classification_agent_factory(f"```json\n{verdict_json()}\n```")
        record = asyncio.run(agent.classify("https://x.io/a.js", "x.io"))
        assert record is not None

    def test_unknown_risk_level_rejected(self, classification_agent_factory) -> None:
        agent, _ = classification_agent_factory(verdict_json(riskLevel="SEVERE"))
        assert asyncio.run(agent.classify("https://x.io/a.js", "x.io")) is None

    def test_missing_field_rejected(self, classification_agent_factory) -> None:
        payload = json.loads(verdict_json())
        del payload["recommendation"]
        agent, _ = classification_agent_factory(json.dumps(payload))
        assert asyncio.run(agent.classify("https://x.io/a.js", "x.io")) is None

    def test_blank_name_rejected(self, classification_agent_factory) -> None:
        agent, _ = classification_agent_factory(verdict_json(scriptName="  "))
        assert asyncio.run(agent.classify("https://x.io/a.js", "x.io")) is None

    def test_non_string_list_rejected(self, classification_agent_factory) -> None:
        agent, _ = classification_agent_factory(verdict_json(dataCollected="everything"))
        assert asyncio.run(agent.classify("https://x.io/a.js", "x.io")) is None

    def test_prose_answer_returns_none(self, classification_agent_factory) -> None:
        agent, _ = classification_agent_factory("I think this script is probably fine.")
        assert asyncio.run(agent.classify("https://x.io/a.js", "x.io")) is None

    def test_call_failure_returns_none(self, classification_agent_factory) -> None:
        agent, _ = classification_agent_factory(ValueError("quota"))
        assert asyncio.run(agent.classify("https://x.io/a.js", "x.io")) is None

    def test_timeout_returns_none(self, classification_agent_factory) -> None:
        agent, _ = classification_agent_factory(verdict_json(), delay=1.0, timeout_seconds=0.05)
        assert asyncio.run(agent.classify("https://x.io/a.js", "x.io")) is None


class TestSentinelChatAgent:
    """Tests for SentinelChatAgent.answer()."""

    def test_returns_stripped_reply(self, chat_agent_factory) -> None:
        agent, completions = chat_agent_factory("  Two scripts are high risk.  ")
        reply = asyncio.run(agent.answer("Which are risky?", "CONTEXT-TEXT"))

        assert reply == "Two scripts are high risk."
        request = completions.calls[0]
        assert request["temperature"] == 0.4
        assert request["max_completion_tokens"] == 800
        assert "CONTEXT-TEXT" in request["messages"][0]["content"]
        assert "at most 5 items" in request["messages"][0]["content"]

    def test_history_is_replayed(self, chat_agent_factory) -> None:
        agent, completions = chat_agent_factory("ok")
        history = [
            chat.ChatMessage(role="user", content="first"),
            chat.ChatMessage(role="assistant", content="answer"),
        ]
        asyncio.run(agent.answer("second", "ctx", history))

        messages = completions.calls[0]["messages"]
        assert [m["content"] for m in messages[1:]] == ["first", "answer", "second"]

    def test_failure_returns_apology(self, chat_agent_factory) -> None:
        agent, _ = chat_agent_factory(ValueError("boom"))
        assert asyncio.run(agent.answer("hi", "ctx")) == APOLOGY

    def test_empty_reply_returns_apology(self, chat_agent_factory) -> None:
        agent, _ = chat_agent_factory("   ")
        assert asyncio.run(agent.answer("hi", "ctx")) == APOLOGY
