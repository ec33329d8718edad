"""Pydantic models for discovered scripts, verdicts and analysis results."""

from __future__ import annotations

from typing import Literal

import pydantic

from script_sentinel.utils.serialization import snake_to_camel, utc_now_iso

RiskLevel = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]
Recommendation = Literal["ALLOW", "MONITOR", "BLOCK"]

# Ordering used when a list of verdicts must be ranked by exposure.
RISK_RANK: dict[str, int] = {"LOW": 0, "MEDIUM": 1, "HIGH": 2, "CRITICAL": 3}


class ScriptRecord(pydantic.BaseModel):
    """A script request observed while rendering a page."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True, frozen=True
    )

    url: str
    discovered_at: str = pydantic.Field(default_factory=utc_now_iso)


class AnalysisRecord(pydantic.BaseModel):
    """The risk verdict for one script."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True, frozen=True
    )

    script_url: str
    script_name: str
    purpose: str
    data_collected: list[str] = pydantic.Field(default_factory=list)
    destinations: list[str] = pydantic.Field(default_factory=list)
    risk_level: RiskLevel
    reasoning: str
    recommendation: Recommendation
    user_friendly_explanation: str


class AnalysisResult(pydantic.BaseModel):
    """Outcome of one analyze request.

    ``scripts`` holds exactly the third-party scripts that were
    classified, in discovery order, so ``analyses[i]`` is the
    verdict for ``scripts[i]``.  ``third_party_script_count``
    counts the full third-party set; ``unanalyzed_script_count``
    is how many of those were left out by the batch bound.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    url: str
    total_scripts: int = 0
    third_party_script_count: int = 0
    scripts: list[ScriptRecord] = pydantic.Field(default_factory=list)
    analyses: list[AnalysisRecord] = pydantic.Field(default_factory=list)
    unanalyzed_script_count: int = 0
    analyzed_at: str = pydantic.Field(default_factory=utc_now_iso)

    @pydantic.model_validator(mode="after")
    def _check_correspondence(self) -> AnalysisResult:
        if len(self.scripts) != len(self.analyses):
            raise ValueError(
                f"scripts ({len(self.scripts)}) and analyses"
                f" ({len(self.analyses)}) must correspond 1:1"
            )
        for script, verdict in zip(self.scripts, self.analyses):
            if script.url != verdict.script_url:
                raise ValueError(
                    f"analysis for {verdict.script_url!r} is out of"
                    f" order with script {script.url!r}"
                )
        return self


class RenderResult(pydantic.BaseModel):
    """Scripts observed while rendering one page."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    scripts: list[ScriptRecord] = pydantic.Field(default_factory=list)
    page_host: str


class StoredAnalysis(pydantic.BaseModel):
    """One entry of the append-only analysis log."""

    model_config = pydantic.ConfigDict(
        alias_generator=snake_to_camel, populate_by_name=True
    )

    key: str
    result: AnalysisResult
