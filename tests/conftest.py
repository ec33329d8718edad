"""Shared fixtures and fakes for the test suite."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any

import pytest

from script_sentinel.agents import config, llm_client
from script_sentinel.agents.chat_agent import SentinelChatAgent
from script_sentinel.agents.script_classification_agent import ScriptClassificationAgent
from script_sentinel.models import analysis
from script_sentinel.utils import errors

# ── Fake oracle ─────────────────────────────────────────────────


def make_completion(text: str | None) -> SimpleNamespace:
    """Shape-compatible stand-in for an OpenAI chat completion."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class FakeCompletions:
    """Replays queued replies for ``client.chat.completions.create``.

    Each queued item is either response text or an exception to
    raise.  When the queue runs dry the last item is reused.
    """

    def __init__(self, *replies: str | BaseException, delay: float = 0.0) -> None:
        self._replies = list(replies) or [""]
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return make_completion(reply)


def fake_chat_client(completions: FakeCompletions) -> llm_client.ChatClient:
    """Wrap *completions* in a ``ChatClient`` as the agents expect it."""
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return llm_client.ChatClient(client=client, model="test-model", backend="openai")  # type: ignore[arg-type]


def fast_call_config(timeout_seconds: float = 5.0) -> config.OracleCallConfig:
    """Call limits without retries so failures surface immediately."""
    return config.OracleCallConfig(ORACLE_TIMEOUT_SECONDS=timeout_seconds, ORACLE_MAX_RETRIES=0)


def verdict_json(**overrides: Any) -> str:
    """A schema-valid classification answer as JSON text."""
    payload: dict[str, Any] = {
        "scriptName": "Evil Tracker",
        "purpose": "Cross-site tracking",
        "dataCollected": ["browsing history", "device fingerprint"],
        "riskLevel": "HIGH",
        "reasoning": "Fingerprints visitors and ships data to an unknown host",
        "recommendation": "BLOCK",
        "userFriendlyExplanation": "This script follows you around the web.",
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture()
def classification_agent_factory():
    """Build a ``ScriptClassificationAgent`` backed by queued replies."""

    def _build(*replies: str | BaseException, delay: float = 0.0, timeout_seconds: float = 5.0):
        completions = FakeCompletions(*replies, delay=delay)
        agent = ScriptClassificationAgent(
            chat_client=fake_chat_client(completions),
            call_config=fast_call_config(timeout_seconds),
        )
        return agent, completions

    return _build


@pytest.fixture()
def chat_agent_factory():
    """Build a ``SentinelChatAgent`` backed by queued replies."""

    def _build(*replies: str | BaseException, delay: float = 0.0, timeout_seconds: float = 5.0):
        completions = FakeCompletions(*replies, delay=delay)
        agent = SentinelChatAgent(
            chat_client=fake_chat_client(completions),
            call_config=fast_call_config(timeout_seconds),
        )
        return agent, completions

    return _build


# ── Fake renderer ───────────────────────────────────────────────


class FakeRenderer:
    """Renderer returning fixed script URLs, or raising a fixed error."""

    def __init__(self, script_urls: list[str] | None = None, error: Exception | None = None) -> None:
        self._script_urls = script_urls or []
        self._error = error
        self.rendered: list[str] = []

    async def render(self, url: str) -> analysis.RenderResult:
        self.rendered.append(url)
        if self._error is not None:
            raise self._error
        host = url.split("://", 1)[1].split("/", 1)[0].lower()
        return analysis.RenderResult(
            scripts=[analysis.ScriptRecord(url=u, discovered_at="2026-01-01T00:00:00Z") for u in self._script_urls],
            page_host=host,
        )


class UnconfiguredOracle:
    """Classification oracle stand-in with no LLM configured."""

    is_configured = False

    async def classify(self, script_url: str, script_host: str) -> analysis.AnalysisRecord | None:
        raise errors.OracleError("should never be called")


# ── Model factories ─────────────────────────────────────────────


def make_record(url: str, risk: analysis.RiskLevel = "LOW", name: str | None = None) -> analysis.AnalysisRecord:
    """A verdict for *url* with the given risk tier."""
    recommendation: analysis.Recommendation = {
        "LOW": "ALLOW",
        "MEDIUM": "MONITOR",
        "HIGH": "MONITOR",
        "CRITICAL": "BLOCK",
    }[risk]
    return analysis.AnalysisRecord(
        script_url=url,
        script_name=name or f"Script {url.rsplit('/', 1)[-1]}",
        purpose="Testing",
        data_collected=["page views"],
        destinations=["example.net"],
        risk_level=risk,
        reasoning="Fixture",
        recommendation=recommendation,
        user_friendly_explanation="Fixture explanation.",
    )


def make_result(
    url: str = "https://shop.example.com",
    risks: list[analysis.RiskLevel] | None = None,
) -> analysis.AnalysisResult:
    """An ``AnalysisResult`` with one verdict per entry of *risks*."""
    risks = risks if risks is not None else ["LOW", "HIGH"]
    script_urls = [f"https://cdn{i}.example.net/s{i}.js" for i in range(len(risks))]
    return analysis.AnalysisResult(
        url=url,
        total_scripts=len(risks) + 1,
        third_party_script_count=len(risks),
        scripts=[analysis.ScriptRecord(url=u, discovered_at="2026-01-01T00:00:00Z") for u in script_urls],
        analyses=[make_record(u, r) for u, r in zip(script_urls, risks)],
    )


@pytest.fixture()
def sample_result() -> analysis.AnalysisResult:
    """A small analysis with one LOW and one HIGH verdict."""
    return make_result()
