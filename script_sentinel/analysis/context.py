"""Render an analysis into bounded text for the chat prompt."""

from __future__ import annotations

from script_sentinel.models import analysis

NO_CONTEXT = "No analysis data available yet. User is asking a general question about scripts."

# Default bound on script summaries in one prompt.
MAX_CONTEXT_SCRIPTS = 10


def _summarize(record: analysis.AnalysisRecord) -> str:
    data = ", ".join(record.data_collected) or "none reported"
    return (
        f"- {record.script_name} ({record.script_url})\n"
        f"  Purpose: {record.purpose}\n"
        f"  Risk: {record.risk_level}\n"
        f"  Data Collected: {data}\n"
        f"  Recommendation: {record.recommendation}"
    )


def build_analysis_context(
    result: analysis.AnalysisResult | None,
    max_scripts: int = MAX_CONTEXT_SCRIPTS,
) -> str:
    """Render *result* as context text for the chat oracle.

    Scripts are ranked by descending risk (stable within a tier)
    and at most *max_scripts* summaries are included; a trailing
    line reports how many were left out.

    Args:
        result: The analysis to describe, or ``None``.
        max_scripts: Upper bound on script summaries.

    Returns:
        Context text, or ``NO_CONTEXT`` when there is no analysis.
    """
    if result is None:
        return NO_CONTEXT

    ranked = sorted(
        result.analyses,
        key=lambda r: analysis.RISK_RANK[r.risk_level],
        reverse=True,
    )
    shown = ranked[:max_scripts]
    omitted = len(ranked) - len(shown)

    summaries = "\n\n".join(_summarize(r) for r in shown) or "(no third-party scripts were analyzed)"
    lines = [
        "ANALYSIS CONTEXT:",
        f"Website analyzed: {result.url}",
        f"Total scripts: {result.total_scripts}",
        f"Third-party scripts: {result.third_party_script_count}",
        f"Analyzed scripts: {len(result.analyses)}",
        "",
        "Detected Scripts:",
        summaries,
    ]
    if omitted:
        lines.append(f"\n({omitted} lower-risk scripts omitted from this summary)")
    lines.append("\nUse this context to answer the user's questions accurately.")
    return "\n".join(lines)
