"""Script classification agent for scripts the registry does not know.

Asks the oracle for a full risk verdict on one script URL and
validates the answer strictly before turning it into an
``AnalysisRecord``.
"""

from __future__ import annotations

import pydantic

from script_sentinel.agents import base, config
from script_sentinel.agents.prompts import script_classification
from script_sentinel.models import analysis
from script_sentinel.utils import errors, logger
from script_sentinel.utils.serialization import snake_to_camel

log = logger.create_logger("ScriptClassificationAgent")


# ── Structured output model ────────────────────────────────────


class _ScriptVerdict(pydantic.BaseModel):
    """LLM response for a single script classification."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True, strict=True
    )

    script_name: str
    purpose: str
    data_collected: list[str]
    risk_level: analysis.RiskLevel
    reasoning: str
    recommendation: analysis.Recommendation
    user_friendly_explanation: str

    # Kept out of the JSON schema: strict structured output
    # rejects ``minLength``.
    @pydantic.field_validator("script_name")
    @classmethod
    def _require_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("scriptName must not be blank")
        return value


# ── Agent class ─────────────────────────────────────────────────


class ScriptClassificationAgent(base.BaseAgent):
    """Text agent that classifies a single unknown script."""

    agent_name = config.AGENT_SCRIPT_CLASSIFICATION
    instructions = script_classification.INSTRUCTIONS
    max_tokens = 600
    temperature = 0.3
    response_model = _ScriptVerdict

    async def classify(
        self,
        script_url: str,
        script_host: str,
    ) -> analysis.AnalysisRecord | None:
        """Classify one script via the oracle.

        Never raises: call failures, timeouts and responses that do
        not contain a schema-valid JSON object all yield ``None``.

        Args:
            script_url: Full script URL.
            script_host: Host serving the script.

        Returns:
            The verdict, or ``None`` on any failure.
        """
        prompt = script_classification.USER_TEMPLATE.format(
            script_url=script_url, script_host=script_host
        )
        try:
            text = await self._complete(prompt)
        except errors.OracleError as error:
            log.error(
                "Script classification call failed",
                {"url": script_url, "error": errors.get_error_message(error)},
            )
            return None

        verdict = self._parse_response(text, _ScriptVerdict)
        if verdict is None:
            return None

        return analysis.AnalysisRecord(
            script_url=script_url,
            destinations=[script_host],
            **verdict.model_dump(),
        )
