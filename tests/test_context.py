"""Tests for script_sentinel.analysis.context — chat context rendering."""

from __future__ import annotations

from conftest import make_result

from script_sentinel.analysis.context import NO_CONTEXT, build_analysis_context


class TestBuildAnalysisContext:
    def test_no_analysis(self) -> None:
        assert build_analysis_context(None) == NO_CONTEXT

    def test_header_counts(self) -> None:
        text = build_analysis_context(make_result(risks=["LOW", "HIGH"]))
        assert "Website analyzed: https://shop.example.com" in text
        assert "Total scripts: 3" in text
        assert "Third-party scripts: 2" in text
        assert "Analyzed scripts: 2" in text

    def test_summary_fields(self) -> None:
        text = build_analysis_context(make_result(risks=["HIGH"]))
        assert "https://cdn0.example.net/s0.js" in text
        assert "Risk: HIGH" in text
        assert "Data Collected: page views" in text
        assert "Recommendation: MONITOR" in text

    def test_highest_risk_first(self) -> None:
        text = build_analysis_context(make_result(risks=["LOW", "CRITICAL", "MEDIUM"]))
        assert text.index("Risk: CRITICAL") < text.index("Risk: MEDIUM") < text.index("Risk: LOW")

    def test_capped_with_omission_note(self) -> None:
        risks = ["LOW"] * 8 + ["HIGH"] * 4
        text = build_analysis_context(make_result(risks=risks), max_scripts=5)

        assert text.count("Risk: ") == 5
        assert text.count("Risk: HIGH") == 4
        assert "(7 lower-risk scripts omitted from this summary)" in text

    def test_empty_analysis(self) -> None:
        text = build_analysis_context(make_result(risks=[]))
        assert "no third-party scripts were analyzed" in text
        assert "omitted" not in text
